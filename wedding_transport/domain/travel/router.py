"""Travel router - FastAPI endpoints for guest flight information"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Guest, TravelInfo, User
from .schemas import (
    AgentExportResponse,
    FlightImportRequest,
    FlightImportResponse,
    FlightInfoResponse,
    FlightInfoUpsert,
    FlightSaveResponse,
    FlightStatusUpdate,
)
from .service import TravelService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Travel"])


def get_travel_service(db: Session = Depends(get_db)) -> TravelService:
    """Dependency injection for TravelService"""
    return TravelService(db)


def flight_response(guest: Guest, travel: Optional[TravelInfo]) -> FlightInfoResponse:
    return FlightInfoResponse(
        id=travel.id if travel else None,
        guestId=guest.id,
        guestName=guest.full_name,
        contactNumber=guest.phone,
        flightNumber=travel.flight_number if travel else None,
        airline=travel.airline if travel else None,
        arrivalDate=travel.arrival_date if travel else None,
        arrivalTime=travel.arrival_time if travel else None,
        arrivalLocation=travel.arrival_location if travel else None,
        departureDate=travel.departure_date if travel else None,
        departureTime=travel.departure_time if travel else None,
        departureLocation=travel.departure_location if travel else None,
        terminal=travel.terminal if travel else None,
        gate=travel.gate if travel else None,
        status=travel.flight_status if travel else "scheduled",
        needsTransportation=bool(travel and travel.needs_transportation),
        specialRequirements=travel.special_requirements if travel else None,
    )


@router.get("/events/{event_id}/flights", response_model=list[FlightInfoResponse])
async def get_event_flights(
    event_id: int,
    current_user: User = Depends(get_current_user),
    service: TravelService = Depends(get_travel_service),
):
    """Flight coordination dashboard data for an event"""
    return [flight_response(guest, travel) for guest, travel in service.get_flights(event_id)]


@router.post("/guests/{guest_id}/flight", response_model=FlightSaveResponse)
async def save_guest_flight(
    guest_id: int,
    data: FlightInfoUpsert,
    current_user: User = Depends(get_current_user),
    service: TravelService = Depends(get_travel_service),
):
    """Create or update flight information for a guest (direct planner input)"""
    guest, travel, created = service.save_flight(guest_id, data)
    return FlightSaveResponse(
        travelInfo=flight_response(guest, travel),
        action="created" if created else "updated",
    )


@router.put("/flights/{travel_id}/status")
async def update_flight_status(
    travel_id: int,
    data: FlightStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: TravelService = Depends(get_travel_service),
):
    return service.update_flight_status(travel_id, data.status)


@router.post("/events/{event_id}/travel/export-for-agent", response_model=AgentExportResponse)
async def export_for_agent(
    event_id: int,
    current_user: User = Depends(get_current_user),
    service: TravelService = Depends(get_travel_service),
):
    """Export the guest list for the travel agent"""
    return service.export_for_agent(event_id)


@router.post("/events/{event_id}/travel/import-flights", response_model=FlightImportResponse)
async def import_flights(
    event_id: int,
    data: FlightImportRequest,
    current_user: User = Depends(get_current_user),
    service: TravelService = Depends(get_travel_service),
):
    """Import flight details returned by the travel agent"""
    return service.import_flights(event_id, data.csvData)
