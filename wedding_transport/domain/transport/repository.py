"""Transport repository - Database operations for transport groups and allocations"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Guest, TransportAllocation, TransportGroup, TravelInfo, WeddingEvent


class TransportRepository:
    """Repository for transport database operations"""

    @staticmethod
    def get_event(db: Session, event_id: int) -> Optional[WeddingEvent]:
        return db.query(WeddingEvent).filter(WeddingEvent.id == event_id).first()

    @staticmethod
    def get_flight_travel_rows(db: Session, event_id: int) -> list[tuple[Guest, TravelInfo]]:
        """Guests of an event flying in on a confirmed flight who asked for a pickup"""
        return (
            db.query(Guest, TravelInfo)
            .join(TravelInfo, TravelInfo.guest_id == Guest.id)
            .filter(
                Guest.event_id == event_id,
                TravelInfo.travel_mode == "air",
                TravelInfo.needs_transportation.is_(True),
                TravelInfo.flight_status == "confirmed",
            )
            .order_by(Guest.id)
            .all()
        )

    @staticmethod
    def get_travel_info_by_guest_ids(db: Session, guest_ids: list[int]) -> dict[int, TravelInfo]:
        if not guest_ids:
            return {}
        rows = db.query(TravelInfo).filter(TravelInfo.guest_id.in_(guest_ids)).all()
        return {row.guest_id: row for row in rows}

    # Group queries
    @staticmethod
    def get_groups_by_event(db: Session, event_id: int) -> list[TransportGroup]:
        return (
            db.query(TransportGroup)
            .options(joinedload(TransportGroup.allocations))
            .filter(TransportGroup.event_id == event_id)
            .order_by(TransportGroup.pickup_date, TransportGroup.pickup_time_slot, TransportGroup.id)
            .all()
        )

    @staticmethod
    def get_group(db: Session, group_id: int) -> Optional[TransportGroup]:
        return (
            db.query(TransportGroup)
            .options(joinedload(TransportGroup.allocations).joinedload(TransportAllocation.guest))
            .filter(TransportGroup.id == group_id)
            .first()
        )

    @staticmethod
    def get_generated_group(db: Session, event_id: int, generation_key: str) -> Optional[TransportGroup]:
        """Oldest group produced for a generation key, if any"""
        return (
            db.query(TransportGroup)
            .filter(
                TransportGroup.event_id == event_id,
                TransportGroup.generation_key == generation_key,
            )
            .order_by(TransportGroup.id)
            .first()
        )

    # Unit-of-work helpers: these stage changes and leave commit/rollback to the caller
    @staticmethod
    def add_group(db: Session, **group_data) -> TransportGroup:
        group = TransportGroup(**group_data)
        db.add(group)
        db.flush()
        return group

    @staticmethod
    def add_allocation(db: Session, group: TransportGroup, guest_id: int, **allocation_data) -> TransportAllocation:
        allocation = TransportAllocation(guest_id=guest_id, **allocation_data)
        group.allocations.append(allocation)
        db.flush()
        return allocation

    @staticmethod
    def clear_allocations(db: Session, group: TransportGroup) -> None:
        group.allocations.clear()
        db.flush()

    @staticmethod
    def delete_generated_drafts(db: Session, event_id: int) -> int:
        groups = (
            db.query(TransportGroup)
            .filter(
                TransportGroup.event_id == event_id,
                TransportGroup.generation_key.isnot(None),
                TransportGroup.status == "draft",
            )
            .all()
        )
        for group in groups:
            db.delete(group)
        db.flush()
        return len(groups)

    @staticmethod
    def remove_stale_generated_allocations(
        db: Session, event_id: int, guest_ids: list[int], keep_group_id: int
    ) -> int:
        """Drop allocations these guests still hold in other generated draft groups"""
        if not guest_ids:
            return 0
        stale = (
            db.query(TransportAllocation)
            .join(TransportGroup, TransportGroup.id == TransportAllocation.transport_group_id)
            .filter(
                TransportGroup.event_id == event_id,
                TransportGroup.generation_key.isnot(None),
                TransportGroup.status == "draft",
                TransportGroup.id != keep_group_id,
                TransportAllocation.guest_id.in_(guest_ids),
            )
            .all()
        )
        for allocation in stale:
            db.delete(allocation)
        db.flush()
        return len(stale)

    # Manual CRUD
    @staticmethod
    def create_group(db: Session, **group_data) -> TransportGroup:
        group = TransportGroup(**group_data)
        db.add(group)
        db.commit()
        db.refresh(group)
        return group

    @staticmethod
    def update_group(db: Session, group: TransportGroup, **updates) -> TransportGroup:
        for key, value in updates.items():
            if value is not None and hasattr(group, key):
                setattr(group, key, value)

        db.commit()
        db.refresh(group)
        return group

    @staticmethod
    def delete_group(db: Session, group: TransportGroup) -> None:
        db.delete(group)
        db.commit()

    # Allocation queries
    @staticmethod
    def get_allocation(db: Session, allocation_id: int) -> Optional[TransportAllocation]:
        return db.query(TransportAllocation).filter(TransportAllocation.id == allocation_id).first()

    @staticmethod
    def get_event_allocation_for_guest(
        db: Session, event_id: int, guest_id: int
    ) -> Optional[TransportAllocation]:
        return (
            db.query(TransportAllocation)
            .join(TransportGroup, TransportGroup.id == TransportAllocation.transport_group_id)
            .filter(TransportGroup.event_id == event_id, TransportAllocation.guest_id == guest_id)
            .first()
        )

    @staticmethod
    def get_guest(db: Session, guest_id: int) -> Optional[Guest]:
        return db.query(Guest).filter(Guest.id == guest_id).first()

    @staticmethod
    def create_allocation(db: Session, **allocation_data) -> TransportAllocation:
        allocation = TransportAllocation(**allocation_data)
        db.add(allocation)
        db.commit()
        db.refresh(allocation)
        return allocation

    @staticmethod
    def update_allocation(db: Session, allocation: TransportAllocation, **updates) -> TransportAllocation:
        for key, value in updates.items():
            if value is not None and hasattr(allocation, key):
                setattr(allocation, key, value)

        db.commit()
        db.refresh(allocation)
        return allocation

    @staticmethod
    def delete_allocation(db: Session, allocation: TransportAllocation) -> None:
        db.delete(allocation)
        db.commit()
