"""Travel service - Business logic for guest flight information and travel-agent exchange"""

import csv
import logging
from datetime import date
from io import StringIO
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import FLIGHT_STATUSES, Guest, TravelInfo, WeddingEvent
from ...shared.validators import validate_time_string
from ...utils.sanitization import clean_csv_cell, sanitize_string, unescape_string
from .repository import TravelRepository
from .schemas import FlightInfoUpsert

logger = logging.getLogger(__name__)

AGENT_CSV_HEADERS = [
    "Guest Name",
    "Email",
    "Phone",
    "Plus One Name",
    "Preferred Arrival Date",
    "Preferred Arrival Airport",
    "Preferred Departure Date",
    "Preferred Departure Airport",
    "Needs Transportation",
    "Special Requirements",
    "Flight Number",
    "Airline",
    "Actual Arrival Date",
    "Actual Arrival Time",
    "Terminal",
    "Gate",
]

# Column positions in the sheet the travel agent sends back
COL_GUEST_NAME = 0
COL_ARRIVAL_AIRPORT = 5
COL_FLIGHT_NUMBER = 10
COL_AIRLINE = 11
COL_ARRIVAL_DATE = 12
COL_ARRIVAL_TIME = 13
COL_TERMINAL = 14
COL_GATE = 15

MAX_ERROR_DETAILS = 10


def _cell(values: list[str], index: int) -> str:
    return clean_csv_cell(values[index]) if index < len(values) else ""


def split_guest_name(full_name: str) -> tuple[str, str]:
    """Split on the first space: Jane Van Dyke -> (Jane, Van Dyke). One word fills both parts."""
    parts = full_name.split()
    first = parts[0]
    last = " ".join(parts[1:]) or first
    return first, last


class TravelService:
    """Service layer for travel business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TravelRepository()

    def get_event(self, event_id: int) -> WeddingEvent:
        event = self.repo.get_event(self.db, event_id)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")
        return event

    def get_flights(self, event_id: int) -> list[tuple[Guest, TravelInfo]]:
        """Flight coordination view: guests arriving by air with a known arrival date"""
        self.get_event(event_id)
        return self.repo.get_air_travel(self.db, event_id)

    def save_flight(self, guest_id: int, data: FlightInfoUpsert) -> tuple[Guest, TravelInfo, bool]:
        guest = self.repo.get_guest(self.db, guest_id)
        if not guest:
            raise HTTPException(status_code=404, detail="Guest not found")

        fields = {
            "travel_mode": "air",
            "flight_number": sanitize_string(data.flightNumber),
            "airline": sanitize_string(data.airline),
            "arrival_date": data.arrivalDate,
            "arrival_time": data.arrivalTime,
            "arrival_location": sanitize_string(data.arrivalLocation),
            "departure_date": data.departureDate,
            "departure_time": data.departureTime,
            "departure_location": sanitize_string(data.departureLocation),
            "terminal": sanitize_string(data.terminal),
            "gate": sanitize_string(data.gate),
            "flight_status": data.flightStatus,
            "needs_transportation": data.needsTransportation,
            "special_requirements": sanitize_string(data.specialRequirements),
        }
        travel, created = self.repo.upsert_travel_info(self.db, guest.id, **fields)
        logger.info(f"✈️ Flight info {'created' if created else 'updated'} for guest {guest.id}")
        return guest, travel, created

    def update_flight_status(self, travel_id: int, status: Optional[str]) -> dict:
        normalized = (status or "").strip().lower()
        if normalized not in FLIGHT_STATUSES:
            raise HTTPException(status_code=400, detail="Invalid flight status")

        travel = self.repo.get_travel_info(self.db, travel_id)
        if not travel:
            raise HTTPException(status_code=404, detail="Flight not found")

        self.repo.update_flight_status(self.db, travel, normalized)
        return {"success": True, "status": normalized}

    def export_for_agent(self, event_id: int) -> dict:
        """CSV of the guest list with blank columns for the travel agent to fill in"""
        event = self.get_event(event_id)
        rows = self.repo.get_guests_with_travel(self.db, event_id)

        output = StringIO()
        writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(AGENT_CSV_HEADERS)

        for guest, travel in rows:
            writer.writerow(
                [
                    guest.full_name,
                    guest.email or "",
                    guest.phone or "",
                    guest.plus_one_name or "" if guest.plus_one_confirmed else "",
                    travel.arrival_date.isoformat() if travel and travel.arrival_date else "",
                    unescape_string(travel.arrival_location) if travel else "",
                    travel.departure_date.isoformat() if travel and travel.departure_date else "",
                    unescape_string(travel.departure_location) if travel else "",
                    "Yes" if travel and travel.needs_transportation else "No",
                    unescape_string(travel.special_requirements) if travel else "",
                    "",  # Flight Number - filled by travel agent
                    "",  # Airline
                    "",  # Actual Arrival Date
                    "",  # Actual Arrival Time
                    "",  # Terminal
                    "",  # Gate
                ]
            )

        logger.info(f"📤 Exported {len(rows)} guests for travel agent (event {event_id})")
        return {
            "success": True,
            "csvData": output.getvalue(),
            "guestCount": len(rows),
            "eventName": event.title,
        }

    def import_flights(self, event_id: int, csv_data: Optional[str]) -> dict:
        """
        Apply the travel agent's completed sheet.

        Imported flights are marked confirmed and needing transportation.
        Rows without a guest name or flight number are skipped; a bad row is
        recorded and does not stop the import.
        """
        if not csv_data or not csv_data.strip():
            raise HTTPException(status_code=400, detail="CSV data is required")

        self.get_event(event_id)

        reader = csv.reader(StringIO(csv_data.strip()))
        next(reader, None)  # header

        imported = 0
        errors: list[str] = []

        for row_number, values in enumerate(reader, start=1):
            guest_name = _cell(values, COL_GUEST_NAME)
            flight_number = _cell(values, COL_FLIGHT_NUMBER)
            if not guest_name or not flight_number:
                continue

            try:
                first_name, last_name = split_guest_name(guest_name)
                guest = self.repo.find_guest_by_name(self.db, event_id, first_name, last_name)
                if not guest:
                    errors.append(f"Guest not found: {guest_name}")
                    continue

                fields = {
                    "travel_mode": "air",
                    "flight_number": sanitize_string(flight_number),
                    "flight_status": "confirmed",
                    "needs_transportation": True,
                }
                optional = {
                    "airline": sanitize_string(_cell(values, COL_AIRLINE)),
                    "arrival_location": sanitize_string(_cell(values, COL_ARRIVAL_AIRPORT)),
                    "terminal": sanitize_string(_cell(values, COL_TERMINAL)),
                    "gate": sanitize_string(_cell(values, COL_GATE)),
                }
                arrival_date = _cell(values, COL_ARRIVAL_DATE)
                if arrival_date:
                    optional["arrival_date"] = date.fromisoformat(arrival_date)
                arrival_time = _cell(values, COL_ARRIVAL_TIME)
                if arrival_time:
                    optional["arrival_time"] = validate_time_string(arrival_time)

                fields.update({k: v for k, v in optional.items() if v})
                self.repo.upsert_travel_info(self.db, guest.id, **fields)
                imported += 1
            except ValueError as e:
                errors.append(f"Row {row_number}: {e}")
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Failed to import flight row {row_number}: {e}")
                errors.append(f"Row {row_number}: could not be saved")

        logger.info(f"📥 Imported {imported} flights for event {event_id}, {len(errors)} errors")
        return {
            "success": True,
            "imported": imported,
            "errors": len(errors),
            "errorDetails": errors[:MAX_ERROR_DETAILS],
        }
