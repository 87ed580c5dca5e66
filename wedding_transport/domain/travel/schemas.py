"""Travel domain schemas - Pydantic models for validation"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_flight_status, validate_time_string


class FlightInfoUpsert(BaseModel):
    """Schema for a planner entering a guest's flight directly"""

    flightNumber: Optional[str] = None
    airline: Optional[str] = None
    arrivalDate: Optional[date] = None
    arrivalTime: Optional[str] = None
    arrivalLocation: Optional[str] = None
    departureDate: Optional[date] = None
    departureTime: Optional[str] = None
    departureLocation: Optional[str] = None
    terminal: Optional[str] = None
    gate: Optional[str] = None
    flightStatus: str = "scheduled"
    needsTransportation: bool = False
    specialRequirements: Optional[str] = None

    @field_validator("arrivalTime", "departureTime")
    @classmethod
    def validate_times(cls, v):
        return validate_time_string(v)

    @field_validator("flightStatus")
    @classmethod
    def validate_status(cls, v):
        return validate_flight_status(v)


class FlightStatusUpdate(BaseModel):
    # Checked in the service so an unknown status is a 400, not a 422
    status: str


class FlightImportRequest(BaseModel):
    csvData: Optional[str] = None


class FlightInfoResponse(BaseModel):
    id: Optional[int]
    guestId: int
    guestName: str
    contactNumber: Optional[str] = None
    flightNumber: Optional[str] = None
    airline: Optional[str] = None
    arrivalDate: Optional[date] = None
    arrivalTime: Optional[str] = None
    arrivalLocation: Optional[str] = None
    departureDate: Optional[date] = None
    departureTime: Optional[str] = None
    departureLocation: Optional[str] = None
    terminal: Optional[str] = None
    gate: Optional[str] = None
    status: str
    needsTransportation: bool
    specialRequirements: Optional[str] = None


class FlightSaveResponse(BaseModel):
    success: bool = True
    travelInfo: FlightInfoResponse
    action: str  # created | updated


class AgentExportResponse(BaseModel):
    success: bool = True
    csvData: str
    guestCount: int
    eventName: str


class FlightImportResponse(BaseModel):
    success: bool = True
    imported: int
    errors: int
    errorDetails: list[str]
