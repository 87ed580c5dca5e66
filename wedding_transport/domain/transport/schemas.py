"""Transport domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_group_status, validate_time_string


class ExistingGroupPolicy(str, Enum):
    """What to do with groups left over from an earlier generation run"""

    UPDATE = "update"  # upsert by generation key
    REPLACE = "replace"  # delete earlier generated drafts first
    APPEND = "append"  # blind insert, re-runs duplicate groups


class TransportGroupCreate(BaseModel):
    """Schema for creating a transport group by hand"""

    eventId: int
    name: str
    transportMode: str = "shuttle"
    vehicleType: Optional[str] = None
    vehicleCount: int = Field(default=1, ge=1)
    vehicleCapacity: Optional[int] = Field(default=None, ge=1)
    pickupLocation: str
    pickupDate: date
    pickupTimeSlot: str
    dropoffLocation: str
    status: str = "draft"
    providerName: Optional[str] = None
    driverInfo: Optional[str] = None
    specialInstructions: Optional[str] = None

    @field_validator("pickupTimeSlot")
    @classmethod
    def validate_slot(cls, v):
        return validate_time_string(v)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_group_status(v)


class TransportGroupUpdate(BaseModel):
    """Schema for updating a transport group; any status value may be set"""

    name: Optional[str] = None
    transportMode: Optional[str] = None
    vehicleType: Optional[str] = None
    vehicleCount: Optional[int] = Field(default=None, ge=1)
    vehicleCapacity: Optional[int] = Field(default=None, ge=1)
    pickupLocation: Optional[str] = None
    pickupDate: Optional[date] = None
    pickupTimeSlot: Optional[str] = None
    dropoffLocation: Optional[str] = None
    status: Optional[str] = None
    providerName: Optional[str] = None
    driverInfo: Optional[str] = None
    specialInstructions: Optional[str] = None

    @field_validator("pickupTimeSlot")
    @classmethod
    def validate_slot(cls, v):
        return validate_time_string(v)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_group_status(v)


class GroupStatusTransition(BaseModel):
    """Schema for moving a group forward through draft -> pending -> confirmed"""

    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_group_status(v)


class TransportGroupResponse(BaseModel):
    id: int
    eventId: int
    name: str
    transportMode: str
    vehicleType: Optional[str]
    vehicleCount: Optional[int]
    vehicleCapacity: Optional[int]
    pickupLocation: str
    pickupDate: date
    pickupTimeSlot: str
    dropoffLocation: str
    status: str
    generationKey: Optional[str] = None
    providerName: Optional[str] = None
    driverInfo: Optional[str] = None
    specialInstructions: Optional[str] = None
    guestCount: int = 0
    created_at: Optional[datetime] = None


class AllocationCreate(BaseModel):
    """Schema for adding a guest to a transport group"""

    guestId: int
    status: str = "pending"
    includesPlusOne: bool = False
    includesChildren: bool = False
    childrenCount: int = Field(default=0, ge=0)
    specialNeeds: Optional[str] = None


class AllocationUpdate(BaseModel):
    status: Optional[str] = None
    includesPlusOne: Optional[bool] = None
    includesChildren: Optional[bool] = None
    childrenCount: Optional[int] = Field(default=None, ge=0)
    specialNeeds: Optional[str] = None


class AllocationResponse(BaseModel):
    id: int
    transportGroupId: int
    guestId: int
    guestName: Optional[str] = None
    status: str
    includesPlusOne: bool
    includesChildren: bool
    childrenCount: int
    specialNeeds: Optional[str] = None


class TransportGroupDetailResponse(BaseModel):
    group: TransportGroupResponse
    allocations: list[AllocationResponse]


class GenerationResponse(BaseModel):
    """Result of generating transport groups from confirmed flights"""

    success: bool = True
    groupsCreated: int
    groupsUpdated: int = 0
    groupsPreserved: int = 0
    guestsProcessed: int
    bufferMinutes: int
    skipped: list[int] = []


class TransportUpdatesResponse(BaseModel):
    needsUpdate: bool
    modifiedGuests: list[int]
