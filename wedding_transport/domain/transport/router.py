"""Transport router - FastAPI endpoints for transport groups and flight pickups"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import TransportAllocation, TransportGroup, User
from .schemas import (
    AllocationCreate,
    AllocationResponse,
    AllocationUpdate,
    ExistingGroupPolicy,
    GenerationResponse,
    GroupStatusTransition,
    TransportGroupCreate,
    TransportGroupDetailResponse,
    TransportGroupResponse,
    TransportGroupUpdate,
    TransportUpdatesResponse,
)
from .service import TransportService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Transport"])


def get_transport_service(db: Session = Depends(get_db)) -> TransportService:
    """Dependency injection for TransportService"""
    return TransportService(db)


def group_response(group: TransportGroup) -> TransportGroupResponse:
    return TransportGroupResponse(
        id=group.id,
        eventId=group.event_id,
        name=group.name,
        transportMode=group.transport_mode,
        vehicleType=group.vehicle_type,
        vehicleCount=group.vehicle_count,
        vehicleCapacity=group.vehicle_capacity,
        pickupLocation=group.pickup_location,
        pickupDate=group.pickup_date,
        pickupTimeSlot=group.pickup_time_slot,
        dropoffLocation=group.dropoff_location,
        status=group.status,
        generationKey=group.generation_key,
        providerName=group.provider_name,
        driverInfo=group.driver_info,
        specialInstructions=group.special_instructions,
        guestCount=len(group.allocations),
        created_at=group.created_at,
    )


def allocation_response(
    allocation: TransportAllocation, guest_name: Optional[str] = None
) -> AllocationResponse:
    if guest_name is None and allocation.guest is not None:
        guest_name = allocation.guest.full_name
    return AllocationResponse(
        id=allocation.id,
        transportGroupId=allocation.transport_group_id,
        guestId=allocation.guest_id,
        guestName=guest_name,
        status=allocation.status,
        includesPlusOne=bool(allocation.includes_plus_one),
        includesChildren=bool(allocation.includes_children),
        childrenCount=allocation.children_count or 0,
        specialNeeds=allocation.special_needs,
    )


# ============================================================================
# FLIGHT-DRIVEN GENERATION
# ============================================================================


@router.post("/events/{event_id}/generate-transport-from-flights", response_model=GenerationResponse)
async def generate_transport_from_flights(
    event_id: int,
    on_existing: ExistingGroupPolicy = Query(
        ExistingGroupPolicy.UPDATE, description="How to treat groups from earlier runs"
    ),
    current_user: User = Depends(get_current_user),
    service: TransportService = Depends(get_transport_service),
):
    """Group confirmed flight arrivals into draft shuttle pickups"""
    try:
        return service.generate_from_flights(event_id, on_existing)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"❌ Transport generation failed for event {event_id} (user {current_user.id}): {e}")
        raise HTTPException(status_code=500, detail="Failed to generate transport groups") from e


@router.post(
    "/events/{event_id}/regenerate-transport-from-flights", response_model=GenerationResponse
)
async def regenerate_transport_from_flights(
    event_id: int,
    current_user: User = Depends(get_current_user),
    service: TransportService = Depends(get_transport_service),
):
    """Discard earlier generated drafts and build the flight pickups again"""
    try:
        return service.generate_from_flights(event_id, ExistingGroupPolicy.REPLACE)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"❌ Transport regeneration failed for event {event_id} (user {current_user.id}): {e}")
        raise HTTPException(status_code=500, detail="Failed to regenerate transport groups") from e


@router.get("/events/{event_id}/check-transport-updates", response_model=TransportUpdatesResponse)
async def check_transport_updates(
    event_id: int,
    current_user: User = Depends(get_current_user),
    service: TransportService = Depends(get_transport_service),
):
    """Find allocated guests whose flights moved out of their group's pickup slot"""
    return service.check_for_updates(event_id)


# ============================================================================
# TRANSPORT GROUPS
# ============================================================================


@router.get("/events/{event_id}/transport-groups", response_model=list[TransportGroupResponse])
async def get_transport_groups(
    event_id: int,
    current_user: User = Depends(get_current_user),
    service: TransportService = Depends(get_transport_service),
):
    return [group_response(g) for g in service.get_groups(event_id)]


@router.get("/transport-groups/{group_id}", response_model=TransportGroupDetailResponse)
async def get_transport_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    service: TransportService = Depends(get_transport_service),
):
    """Get a transport group with its guest allocations"""
    group = service.get_group(group_id)
    return TransportGroupDetailResponse(
        group=group_response(group),
        allocations=[allocation_response(a) for a in group.allocations],
    )


@router.post("/transport-groups", response_model=TransportGroupResponse, status_code=201)
async def create_transport_group(
    data: TransportGroupCreate,
    current_user: User = Depends(get_current_user),
    service: TransportService = Depends(get_transport_service),
):
    return group_response(service.create_group(data))


@router.put("/transport-groups/{group_id}", response_model=TransportGroupResponse)
async def update_transport_group(
    group_id: int,
    data: TransportGroupUpdate,
    current_user: User = Depends(get_current_user),
    service: TransportService = Depends(get_transport_service),
):
    return group_response(service.update_group(group_id, data))


@router.post("/transport-groups/{group_id}/status", response_model=TransportGroupResponse)
async def transition_transport_group_status(
    group_id: int,
    data: GroupStatusTransition,
    current_user: User = Depends(get_current_user),
    service: TransportService = Depends(get_transport_service),
):
    """Move a group one step forward: draft -> pending -> confirmed"""
    return group_response(service.transition_status(group_id, data.status))


@router.delete("/transport-groups/{group_id}")
async def delete_transport_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    service: TransportService = Depends(get_transport_service),
):
    return service.delete_group(group_id)


# ============================================================================
# ALLOCATIONS
# ============================================================================


@router.post(
    "/transport-groups/{group_id}/allocations", response_model=AllocationResponse, status_code=201
)
async def create_transport_allocation(
    group_id: int,
    data: AllocationCreate,
    current_user: User = Depends(get_current_user),
    service: TransportService = Depends(get_transport_service),
):
    allocation = service.add_allocation(group_id, data)
    return allocation_response(allocation, service.guest_name(allocation.guest_id))


@router.put("/transport-allocations/{allocation_id}", response_model=AllocationResponse)
async def update_transport_allocation(
    allocation_id: int,
    data: AllocationUpdate,
    current_user: User = Depends(get_current_user),
    service: TransportService = Depends(get_transport_service),
):
    return allocation_response(service.update_allocation(allocation_id, data))


@router.delete("/transport-allocations/{allocation_id}")
async def delete_transport_allocation(
    allocation_id: int,
    current_user: User = Depends(get_current_user),
    service: TransportService = Depends(get_transport_service),
):
    return service.delete_allocation(allocation_id)
