"""
Response schemas passed to Gemini for JSON-mode generation.

The same models validate the parsed response before it is converted into
the pipeline's dataclasses.
"""

from pydantic import BaseModel

from lead_triage.core.models import BoardBasis, ExtractionIntent, TriageIntent


class TriageResponse(BaseModel):
    """Triage verdict as returned by the model."""

    is_reservation_lead: bool
    initial_intent_type: TriageIntent


class StayDatesResponse(BaseModel):
    check_in_date: str | None = None
    check_out_date: str | None = None
    num_nights: int


class AccommodationResponse(BaseModel):
    num_people: int
    num_rooms: int
    board_basis: BoardBasis


class HotelPreferenceResponse(BaseModel):
    name: str | None = None
    star_rating: int | None = None


class RequesterDetailsResponse(BaseModel):
    full_name: str
    organization: str | None = None


class ExtractionResponse(BaseModel):
    """Reservation details as returned by the model."""

    intent: ExtractionIntent
    confidence_score: float
    stay_dates: StayDatesResponse
    accommodation: AccommodationResponse
    hotel_preference: HotelPreferenceResponse
    requester_details: RequesterDetailsResponse
