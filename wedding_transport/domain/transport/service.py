"""Transport service - Business logic for transport groups and flight pickups"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import DEFAULT_ARRIVAL_BUFFER_MINUTES, DEFAULT_DROPOFF_LOCATION, PICKUP_SLOT_MINUTES
from ...models import TransportAllocation, TransportGroup, WeddingEvent
from ...shared.validators import parse_buffer_minutes
from ...utils.sanitization import sanitize_string
from .grouping import (
    UNKNOWN_LOCATION,
    TimeSlotBucket,
    TravelRecord,
    bucket_by_arrival_slot,
    compute_pickup_slot,
    generation_key,
    group_name,
    select_vehicle_plan,
)
from .repository import TransportRepository
from .schemas import (
    AllocationCreate,
    AllocationUpdate,
    ExistingGroupPolicy,
    TransportGroupCreate,
    TransportGroupUpdate,
)

logger = logging.getLogger(__name__)

# Forward-only lifecycle used by the status transition endpoint
STATUS_ORDER = {"draft": 0, "pending": 1, "confirmed": 2}

GROUP_FIELD_MAP = {
    "name": "name",
    "transportMode": "transport_mode",
    "vehicleType": "vehicle_type",
    "vehicleCount": "vehicle_count",
    "vehicleCapacity": "vehicle_capacity",
    "pickupLocation": "pickup_location",
    "pickupDate": "pickup_date",
    "pickupTimeSlot": "pickup_time_slot",
    "dropoffLocation": "dropoff_location",
    "status": "status",
    "providerName": "provider_name",
    "driverInfo": "driver_info",
    "specialInstructions": "special_instructions",
}

ALLOCATION_FIELD_MAP = {
    "status": "status",
    "includesPlusOne": "includes_plus_one",
    "includesChildren": "includes_children",
    "childrenCount": "children_count",
    "specialNeeds": "special_needs",
}

FREE_TEXT_FIELDS = {"name", "provider_name", "driver_info", "special_instructions", "special_needs"}


def _to_columns(data: dict, field_map: dict) -> dict:
    columns = {}
    for field, value in data.items():
        column = field_map.get(field)
        if column is None:
            continue
        columns[column] = sanitize_string(value) if column in FREE_TEXT_FIELDS else value
    return columns


def resolve_buffer_minutes(event: WeddingEvent) -> int:
    return parse_buffer_minutes(event.arrival_buffer_time, default=DEFAULT_ARRIVAL_BUFFER_MINUTES)


def resolve_dropoff_location(event: WeddingEvent) -> str:
    return event.accommodation_hotel_name or event.location or DEFAULT_DROPOFF_LOCATION


class TransportService:
    """Service layer for transport business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TransportRepository()

    def get_event(self, event_id: int) -> WeddingEvent:
        event = self.repo.get_event(self.db, event_id)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")
        return event

    # ========================================================================
    # FLIGHT-DRIVEN GENERATION
    # ========================================================================

    def load_travel_records(self, event_id: int) -> list[TravelRecord]:
        rows = self.repo.get_flight_travel_rows(self.db, event_id)
        return [
            TravelRecord(
                guest_id=guest.id,
                arrival_date=travel.arrival_date,
                arrival_time=travel.arrival_time,
                arrival_location=travel.arrival_location,
                flight_number=travel.flight_number,
                guest_name=guest.full_name,
            )
            for guest, travel in rows
        ]

    def generate_from_flights(
        self,
        event_id: int,
        on_existing: ExistingGroupPolicy = ExistingGroupPolicy.UPDATE,
    ) -> dict:
        """
        Build draft shuttle groups from confirmed flight arrivals.

        Every bucket is written in its own transaction, so a failure leaves
        earlier buckets committed and nothing of the failing bucket behind.
        The failure itself is re-raised to the caller.
        """
        event = self.get_event(event_id)
        buffer_minutes = resolve_buffer_minutes(event)
        dropoff_location = resolve_dropoff_location(event)

        records = self.load_travel_records(event_id)
        result = bucket_by_arrival_slot(records, buffer_minutes, PICKUP_SLOT_MINUTES)

        logger.info(
            f"🚐 Generating transport for event {event_id}: {len(records)} flight guests, "
            f"{len(result.buckets)} pickup slots, buffer {buffer_minutes} min, policy {on_existing.value}"
        )
        if result.skipped:
            logger.warning(
                f"⚠️ Skipped {len(result.skipped)} guests without arrival date/time: {result.skipped}"
            )

        if on_existing == ExistingGroupPolicy.REPLACE:
            try:
                removed = self.repo.delete_generated_drafts(self.db, event_id)
                self.db.commit()
                logger.info(f"🗑️ Removed {removed} earlier generated draft groups for event {event_id}")
            except SQLAlchemyError:
                self.db.rollback()
                raise

        created = updated = preserved = 0
        for bucket in result.buckets:
            try:
                outcome = self._write_bucket(event, bucket, dropoff_location, on_existing)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Failed to write pickup slot {bucket.key}: {e}")
                raise

            if outcome == "created":
                created += 1
            elif outcome == "updated":
                updated += 1
            else:
                preserved += 1

        logger.info(
            f"✅ Transport generation for event {event_id}: {created} created, "
            f"{updated} updated, {preserved} preserved"
        )

        return {
            "success": True,
            "groupsCreated": created,
            "groupsUpdated": updated,
            "groupsPreserved": preserved,
            "guestsProcessed": len(records),
            "bufferMinutes": buffer_minutes,
            "skipped": result.skipped,
        }

    def _write_bucket(
        self,
        event: WeddingEvent,
        bucket: TimeSlotBucket,
        dropoff_location: str,
        on_existing: ExistingGroupPolicy,
    ) -> str:
        plan = select_vehicle_plan(bucket.size)
        key = generation_key(event.id, bucket)

        group = None
        if on_existing != ExistingGroupPolicy.APPEND:
            group = self.repo.get_generated_group(self.db, event.id, key)

        if group is not None and group.status != "draft":
            # Operators have already acted on this group; leave it alone
            logger.info(f"🔒 Keeping {group.status} group {group.id} for slot {bucket.key}")
            return "preserved"

        vehicle_fields = {
            "name": group_name(bucket),
            "vehicle_type": plan.vehicle_type,
            "vehicle_count": plan.vehicle_count,
            "vehicle_capacity": plan.vehicle_capacity,
            "dropoff_location": dropoff_location,
        }

        if group is None:
            group = self.repo.add_group(
                self.db,
                event_id=event.id,
                pickup_location=bucket.location,
                pickup_date=bucket.arrival_date,
                pickup_time_slot=bucket.slot_label,
                status="draft",
                transport_mode="shuttle",
                generation_key=key,
                **vehicle_fields,
            )
            outcome = "created"
        else:
            for column, value in vehicle_fields.items():
                setattr(group, column, value)
            self.repo.clear_allocations(self.db, group)
            outcome = "updated"

        if on_existing != ExistingGroupPolicy.APPEND:
            self.repo.remove_stale_generated_allocations(
                self.db, event.id, bucket.guest_ids, keep_group_id=group.id
            )

        for guest_id in bucket.guest_ids:
            self.repo.add_allocation(
                self.db,
                group,
                guest_id,
                status="pending",
                includes_plus_one=False,
                includes_children=False,
                children_count=0,
            )

        return outcome

    def check_for_updates(self, event_id: int) -> dict:
        """Report allocated guests whose current flight no longer matches their group's slot"""
        event = self.get_event(event_id)
        buffer_minutes = resolve_buffer_minutes(event)
        groups = self.repo.get_groups_by_event(self.db, event_id)

        guest_ids = [a.guest_id for g in groups for a in g.allocations]
        travel_by_guest = self.repo.get_travel_info_by_guest_ids(self.db, guest_ids)

        modified: list[int] = []
        for group in groups:
            for allocation in group.allocations:
                travel = travel_by_guest.get(allocation.guest_id)
                if travel is None:
                    continue

                slot = None
                if travel.arrival_date and travel.arrival_time:
                    slot = compute_pickup_slot(
                        travel.arrival_date, travel.arrival_time, buffer_minutes, PICKUP_SLOT_MINUTES
                    )
                location = travel.arrival_location or UNKNOWN_LOCATION

                if (
                    location != group.pickup_location
                    or travel.arrival_date != group.pickup_date
                    or slot != group.pickup_time_slot
                ):
                    if allocation.guest_id not in modified:
                        modified.append(allocation.guest_id)

        return {"needsUpdate": bool(modified), "modifiedGuests": modified}

    # ========================================================================
    # GROUP CRUD
    # ========================================================================

    def get_groups(self, event_id: int) -> list[TransportGroup]:
        return self.repo.get_groups_by_event(self.db, event_id)

    def get_group(self, group_id: int) -> TransportGroup:
        group = self.repo.get_group(self.db, group_id)
        if not group:
            raise HTTPException(status_code=404, detail="Transport group not found")
        return group

    def create_group(self, data: TransportGroupCreate) -> TransportGroup:
        self.get_event(data.eventId)
        columns = _to_columns(data.model_dump(), GROUP_FIELD_MAP)
        group = self.repo.create_group(self.db, event_id=data.eventId, **columns)
        logger.info(f"📝 Created transport group {group.id} for event {data.eventId}")
        return group

    def update_group(self, group_id: int, data: TransportGroupUpdate) -> TransportGroup:
        group = self.get_group(group_id)
        updates = _to_columns(data.model_dump(exclude_unset=True), GROUP_FIELD_MAP)
        return self.repo.update_group(self.db, group, **updates)

    def transition_status(self, group_id: int, new_status: str) -> TransportGroup:
        group = self.get_group(group_id)
        current = group.status

        if current == new_status:
            return group

        if STATUS_ORDER.get(new_status, -1) != STATUS_ORDER.get(current, -1) + 1:
            raise HTTPException(
                status_code=409,
                detail=f"Cannot move transport group from {current} to {new_status}",
            )

        logger.info(f"🔄 Transport group {group_id}: {current} -> {new_status}")
        return self.repo.update_group(self.db, group, status=new_status)

    def delete_group(self, group_id: int) -> dict:
        group = self.get_group(group_id)
        self.repo.delete_group(self.db, group)
        return {"success": True}

    # ========================================================================
    # ALLOCATIONS
    # ========================================================================

    def add_allocation(self, group_id: int, data: AllocationCreate) -> TransportAllocation:
        group = self.get_group(group_id)

        guest = self.repo.get_guest(self.db, data.guestId)
        if not guest or guest.event_id != group.event_id:
            raise HTTPException(status_code=404, detail="Guest not found for this event")

        existing = self.repo.get_event_allocation_for_guest(self.db, group.event_id, data.guestId)
        if existing:
            raise HTTPException(
                status_code=409,
                detail=f"Guest is already allocated to transport group {existing.transport_group_id}",
            )

        columns = _to_columns(data.model_dump(), ALLOCATION_FIELD_MAP)
        return self.repo.create_allocation(
            self.db, transport_group_id=group.id, guest_id=data.guestId, **columns
        )

    def get_allocation(self, allocation_id: int) -> TransportAllocation:
        allocation = self.repo.get_allocation(self.db, allocation_id)
        if not allocation:
            raise HTTPException(status_code=404, detail="Transport allocation not found")
        return allocation

    def update_allocation(self, allocation_id: int, data: AllocationUpdate) -> TransportAllocation:
        allocation = self.get_allocation(allocation_id)
        updates = _to_columns(data.model_dump(exclude_unset=True), ALLOCATION_FIELD_MAP)
        return self.repo.update_allocation(self.db, allocation, **updates)

    def delete_allocation(self, allocation_id: int) -> dict:
        allocation = self.get_allocation(allocation_id)
        self.repo.delete_allocation(self.db, allocation)
        return {"success": True}

    def guest_name(self, guest_id: int) -> Optional[str]:
        guest = self.repo.get_guest(self.db, guest_id)
        return guest.full_name if guest else None
