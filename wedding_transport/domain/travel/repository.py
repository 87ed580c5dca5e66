"""Travel repository - Database operations for guest travel information"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Guest, TravelInfo, WeddingEvent


class TravelRepository:
    """Repository for travel database operations"""

    @staticmethod
    def get_event(db: Session, event_id: int) -> Optional[WeddingEvent]:
        return db.query(WeddingEvent).filter(WeddingEvent.id == event_id).first()

    @staticmethod
    def get_guest(db: Session, guest_id: int) -> Optional[Guest]:
        return db.query(Guest).filter(Guest.id == guest_id).first()

    @staticmethod
    def find_guest_by_name(db: Session, event_id: int, first_name: str, last_name: str) -> Optional[Guest]:
        return (
            db.query(Guest)
            .filter(
                Guest.event_id == event_id,
                Guest.first_name == first_name,
                Guest.last_name == last_name,
            )
            .first()
        )

    @staticmethod
    def get_guests_with_travel(db: Session, event_id: int) -> list[tuple[Guest, Optional[TravelInfo]]]:
        return (
            db.query(Guest, TravelInfo)
            .outerjoin(TravelInfo, TravelInfo.guest_id == Guest.id)
            .filter(Guest.event_id == event_id)
            .order_by(Guest.id)
            .all()
        )

    @staticmethod
    def get_air_travel(db: Session, event_id: int) -> list[tuple[Guest, TravelInfo]]:
        return (
            db.query(Guest, TravelInfo)
            .join(TravelInfo, TravelInfo.guest_id == Guest.id)
            .filter(
                Guest.event_id == event_id,
                TravelInfo.travel_mode == "air",
                TravelInfo.arrival_date.isnot(None),
            )
            .order_by(TravelInfo.arrival_date, TravelInfo.arrival_time, Guest.id)
            .all()
        )

    @staticmethod
    def get_travel_info(db: Session, travel_id: int) -> Optional[TravelInfo]:
        return db.query(TravelInfo).filter(TravelInfo.id == travel_id).first()

    @staticmethod
    def get_travel_info_by_guest(db: Session, guest_id: int) -> Optional[TravelInfo]:
        return db.query(TravelInfo).filter(TravelInfo.guest_id == guest_id).first()

    @staticmethod
    def upsert_travel_info(db: Session, guest_id: int, commit: bool = True, **fields) -> tuple[TravelInfo, bool]:
        """
        Create or update the single travel record of a guest.
        Returns (travel_info, created)
        """
        travel = db.query(TravelInfo).filter(TravelInfo.guest_id == guest_id).first()
        created = travel is None
        if created:
            travel = TravelInfo(guest_id=guest_id, **fields)
            db.add(travel)
        else:
            for key, value in fields.items():
                if hasattr(travel, key):
                    setattr(travel, key, value)

        if commit:
            db.commit()
            db.refresh(travel)
        else:
            db.flush()
        return travel, created

    @staticmethod
    def update_flight_status(db: Session, travel: TravelInfo, status: str) -> TravelInfo:
        travel.flight_status = status
        db.commit()
        db.refresh(travel)
        return travel
