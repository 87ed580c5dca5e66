from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

TRAVEL_MODES = ("air", "road", "train")
FLIGHT_STATUSES = ("scheduled", "confirmed", "delayed", "cancelled")
TRANSPORT_GROUP_STATUSES = ("draft", "pending", "confirmed")
ALLOCATION_STATUSES = ("pending", "confirmed", "cancelled")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    role = Column(String(50), default="staff", nullable=False)  # staff, admin, couple
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class WeddingEvent(Base):
    __tablename__ = "wedding_events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    couple_names = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    accommodation_hotel_name = Column(String(255), nullable=True)
    # "HH:MM" delay after landing before a guest is ready for pickup
    arrival_buffer_time = Column(String(10), nullable=True)
    departure_buffer_time = Column(String(10), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    guests = relationship("Guest", back_populates="event", cascade="all, delete-orphan")
    transport_groups = relationship(
        "TransportGroup", back_populates="event", cascade="all, delete-orphan"
    )


class Guest(Base):
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("wedding_events.id"), nullable=False, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    plus_one_allowed = Column(Boolean, default=False)
    plus_one_confirmed = Column(Boolean, default=False)
    plus_one_name = Column(String(255), nullable=True)
    number_of_children = Column(Integer, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    event = relationship("WeddingEvent", back_populates="guests")
    travel_info = relationship(
        "TravelInfo", back_populates="guest", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class TravelInfo(Base):
    __tablename__ = "travel_info"

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False, unique=True, index=True)
    travel_mode = Column(String(20), nullable=True)  # air, road, train
    flight_number = Column(String(20), nullable=True)
    airline = Column(String(100), nullable=True)
    arrival_date = Column(Date, nullable=True)
    arrival_time = Column(String(10), nullable=True)  # "HH:MM" local time
    arrival_location = Column(String(255), nullable=True)
    departure_date = Column(Date, nullable=True)
    departure_time = Column(String(10), nullable=True)
    departure_location = Column(String(255), nullable=True)
    terminal = Column(String(20), nullable=True)
    gate = Column(String(20), nullable=True)
    flight_status = Column(String(20), default="scheduled", nullable=False)
    needs_transportation = Column(Boolean, default=False, nullable=False)
    special_requirements = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    guest = relationship("Guest", back_populates="travel_info")


class TransportGroup(Base):
    __tablename__ = "transport_groups"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("wedding_events.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    transport_mode = Column(String(50), nullable=False, default="shuttle")
    vehicle_type = Column(String(50), nullable=True)
    vehicle_count = Column(Integer, default=1)
    vehicle_capacity = Column(Integer, nullable=True)
    pickup_location = Column(String(255), nullable=False)
    pickup_date = Column(Date, nullable=False)
    pickup_time_slot = Column(String(10), nullable=False)
    dropoff_location = Column(String(255), nullable=False)
    status = Column(String(20), default="draft", nullable=False)  # draft, pending, confirmed
    # Deterministic key for groups produced from flight arrivals; NULL for manual groups
    generation_key = Column(String(512), nullable=True, index=True)
    provider_name = Column(String(255), nullable=True)
    driver_info = Column(Text, nullable=True)
    special_instructions = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    event = relationship("WeddingEvent", back_populates="transport_groups")
    allocations = relationship(
        "TransportAllocation",
        back_populates="transport_group",
        cascade="all, delete-orphan",
        order_by="TransportAllocation.id",
    )


class TransportAllocation(Base):
    __tablename__ = "transport_allocations"

    id = Column(Integer, primary_key=True, index=True)
    transport_group_id = Column(
        Integer, ForeignKey("transport_groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False, index=True)
    status = Column(String(20), default="pending", nullable=False)
    includes_plus_one = Column(Boolean, default=False)
    includes_children = Column(Boolean, default=False)
    children_count = Column(Integer, default=0)
    special_needs = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    transport_group = relationship("TransportGroup", back_populates="allocations")
    guest = relationship("Guest")
