"""
Flight arrival grouping. Pure functions, no database access.

Guests are bucketed by (arrival location, arrival date, pickup time slot) where
the pickup time is the landing time plus the event's arrival buffer, floored
to a fixed slot width. Each bucket then gets a vehicle plan from fixed
capacity thresholds.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from ...shared.validators import parse_time_string

SLOT_MINUTES = 30
UNKNOWN_LOCATION = "Unknown"


@dataclass(frozen=True)
class TravelRecord:
    guest_id: int
    arrival_date: Optional[date]
    arrival_time: Optional[str]
    arrival_location: Optional[str]
    flight_number: Optional[str] = None
    guest_name: str = ""


@dataclass
class TimeSlotBucket:
    location: str
    arrival_date: date
    slot_label: str
    records: list[TravelRecord] = field(default_factory=list)

    @property
    def key(self) -> str:
        return bucket_key(self.location, self.arrival_date, self.slot_label)

    @property
    def size(self) -> int:
        return len(self.records)

    @property
    def guest_ids(self) -> list[int]:
        return [r.guest_id for r in self.records]


@dataclass
class BucketingResult:
    buckets: list[TimeSlotBucket]
    skipped: list[int]


@dataclass(frozen=True)
class VehiclePlan:
    vehicle_type: str
    vehicle_count: int
    vehicle_capacity: int

    @property
    def seats(self) -> int:
        return self.vehicle_count * self.vehicle_capacity


SEDAN_MAX_GUESTS = 4
SEDAN_CAPACITY = 4
SUV_MAX_GUESTS = 8
SUV_CAPACITY = 6
BUS_CAPACITY = 15


def bucket_key(location: str, arrival_date: date, slot_label: str) -> str:
    return f"{location}_{arrival_date.isoformat()}_{slot_label}"


def quantize_slot(moment: datetime, slot_minutes: int = SLOT_MINUTES) -> str:
    """Floor a timestamp to its slot start and format it as "HH:MM"."""
    slot_minute = (moment.minute // slot_minutes) * slot_minutes
    return f"{moment.hour:02d}:{slot_minute:02d}"


def compute_pickup_time(arrival_date: date, arrival_time: str, buffer_minutes: int) -> Optional[datetime]:
    parsed = parse_time_string(arrival_time)
    if parsed is None:
        return None
    return datetime.combine(arrival_date, parsed) + timedelta(minutes=buffer_minutes)


def compute_pickup_slot(
    arrival_date: date,
    arrival_time: str,
    buffer_minutes: int,
    slot_minutes: int = SLOT_MINUTES,
) -> Optional[str]:
    """
    Slot label for a guest landing at ``arrival_time`` on ``arrival_date``.

    The hour comes from the buffered pickup time, so a pickup that crosses
    midnight gets an early-morning label while still belonging to the
    arrival date.
    """
    pickup = compute_pickup_time(arrival_date, arrival_time, buffer_minutes)
    if pickup is None:
        return None
    return quantize_slot(pickup, slot_minutes)


def bucket_by_arrival_slot(
    records: Iterable[TravelRecord],
    buffer_minutes: int,
    slot_minutes: int = SLOT_MINUTES,
) -> BucketingResult:
    """
    Partition travel records into pickup buckets.

    Records without an arrival date or a parseable arrival time are not
    bucketed; their guest ids are returned in ``skipped``. A missing or empty
    arrival location is grouped under ``UNKNOWN_LOCATION`` ("Unknown") rather
    than the raw value. Buckets keep the order in which their first guest was
    seen and guests keep input order.

    Raises:
        ValueError: If ``slot_minutes`` is not positive
    """
    if slot_minutes < 1:
        raise ValueError("Pickup slots must be at least one minute wide")

    buckets: dict[str, TimeSlotBucket] = {}
    skipped: list[int] = []

    for record in records:
        if record.arrival_date is None or not record.arrival_time:
            skipped.append(record.guest_id)
            continue

        slot_label = compute_pickup_slot(
            record.arrival_date, record.arrival_time, buffer_minutes, slot_minutes
        )
        if slot_label is None:
            skipped.append(record.guest_id)
            continue

        location = record.arrival_location if record.arrival_location else UNKNOWN_LOCATION
        key = bucket_key(location, record.arrival_date, slot_label)
        if key not in buckets:
            buckets[key] = TimeSlotBucket(
                location=location, arrival_date=record.arrival_date, slot_label=slot_label
            )
        buckets[key].records.append(record)

    return BucketingResult(buckets=list(buckets.values()), skipped=skipped)


def select_vehicle_plan(guest_count: int) -> VehiclePlan:
    """
    Pick a vehicle type and count for a bucket of ``guest_count`` guests.

    Threshold based, not an optimal packing; the plan always seats everyone.
    """
    if guest_count < 1:
        raise ValueError("A vehicle plan needs at least one guest")

    if guest_count <= SEDAN_MAX_GUESTS:
        return VehiclePlan(vehicle_type="sedan", vehicle_count=1, vehicle_capacity=SEDAN_CAPACITY)
    if guest_count <= SUV_MAX_GUESTS:
        return VehiclePlan(
            vehicle_type="suv",
            vehicle_count=math.ceil(guest_count / SUV_CAPACITY),
            vehicle_capacity=SUV_CAPACITY,
        )
    return VehiclePlan(
        vehicle_type="bus",
        vehicle_count=math.ceil(guest_count / BUS_CAPACITY),
        vehicle_capacity=BUS_CAPACITY,
    )


def group_name(bucket: TimeSlotBucket) -> str:
    return f"Flight Pickup - {bucket.location} {bucket.slot_label}"


def generation_key(event_id: int, bucket: TimeSlotBucket) -> str:
    """Stable identity of a generated group, used to upsert on re-runs."""
    return f"{event_id}:{bucket.location}:{bucket.arrival_date.isoformat()}:{bucket.slot_label}"
