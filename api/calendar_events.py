# api/calendar_events.py

from fastapi import APIRouter, HTTPException, Depends
from datetime import date, datetime
import calendar

from models.calendar_schemas import CalendarEventCreate, CalendarEventResponse, CalendarMonthResponse
from services.auth_service import get_current_user_id
from services.supabase_service import get_supabase_service
from utils.timezone_utils import end_of_day, start_of_day, to_storage_string

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


def get_calendar_store():
    return get_supabase_service()


def month_range(year: int, month: int):
    """First day 00:00:00 to last day 23:59:59 of the month"""
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise ValueError(f"Invalid month: {year}-{month}")
    last_day = calendar.monthrange(year, month)[1]
    start = start_of_day(date(year, month, 1))
    end = end_of_day(date(year, month, last_day)).replace(microsecond=0)
    return start, end


@router.get("/{year}/{month}", response_model=CalendarMonthResponse)
async def get_month_events(
    year: int,
    month: int,
    user_id: str = Depends(get_current_user_id),
    store=Depends(get_calendar_store),
):
    """Events within one calendar month, ordered by time"""
    try:
        start, end = month_range(year, month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        events = await store.get_calendar_events(user_id, start, end)
    except Exception as e:
        print(f"❌ Error fetching calendar events: {e}")
        raise HTTPException(status_code=503, detail="Failed to load calendar events, please try again")

    return CalendarMonthResponse(
        year=year,
        month=month,
        events=[CalendarEventResponse(**event) for event in events],
    )


@router.post("", response_model=CalendarEventResponse)
async def create_event(
    event: CalendarEventCreate,
    user_id: str = Depends(get_current_user_id),
    store=Depends(get_calendar_store),
):
    """Add an event to the user's calendar"""
    try:
        when = datetime.strptime(f"{event.date} {event.time}", "%Y-%m-%d %H:%M")
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid event date or time")

    event_data = event.model_dump()
    event_data['user_id'] = user_id
    event_data['timestamp'] = to_storage_string(when)

    try:
        created = await store.create_calendar_event(event_data)
    except Exception as e:
        print(f"❌ Error adding event: {e}")
        raise HTTPException(status_code=500, detail="Failed to add event")

    print(f"✅ Added calendar event '{event.title}' on {event.date} {event.time}")
    return CalendarEventResponse(**created)


@router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    store=Depends(get_calendar_store),
):
    """Delete a calendar event"""
    try:
        deleted = await store.delete_calendar_event(user_id, event_id)
    except Exception as e:
        print(f"❌ Error deleting event: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete event")

    if not deleted:
        raise HTTPException(status_code=404, detail="Event not found")

    return {"success": True, "message": "Event deleted successfully"}
