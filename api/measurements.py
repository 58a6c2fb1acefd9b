# api/measurements.py
# Weight and body-fat logging plus the chart history endpoint

from fastapi import APIRouter, HTTPException, Depends, Query
from datetime import date
from typing import Optional

from models.measurement_schemas import (
    METRIC_LIMITS,
    MeasurementCreate,
    MeasurementResponse,
    HistoryResponse,
)
from services.auth_service import get_current_user_id
from services.history_engine import (
    HistoryFilter,
    InvalidFilter,
    MeasurementHistoryEngine,
    NotAuthenticated,
    RetrievalFailed,
)
from services.supabase_service import get_supabase_service
from utils.timezone_utils import get_timezone_offset, get_user_now, to_wall_clock

router = APIRouter(prefix="/api/measurements", tags=["measurements"])


def get_measurement_store():
    """Store dependency; tests swap in an in-memory fake"""
    return get_supabase_service()


def check_metric(metric: str) -> str:
    if metric not in METRIC_LIMITS:
        raise HTTPException(status_code=404, detail=f"Unknown metric: {metric}")
    return metric


def build_history_filter(range_: Optional[str], start: Optional[date], end: Optional[date]) -> HistoryFilter:
    if start is not None or end is not None:
        if range_ is not None:
            raise InvalidFilter("Use either range or start/end, not both")
        if start is None or end is None:
            raise InvalidFilter("Both start and end dates are required")
        return HistoryFilter.interval(start, end)
    return HistoryFilter.preset_window(range_ or "all")


@router.post("/{metric}", response_model=MeasurementResponse)
async def create_measurement(
    measurement: MeasurementCreate,
    metric: str = Depends(check_metric),
    user_id: str = Depends(get_current_user_id),
    tz_offset: int = Depends(get_timezone_offset),
    store=Depends(get_measurement_store),
):
    """Log a new weight or body-fat measurement"""
    unit, minimum, maximum = METRIC_LIMITS[metric]
    if not minimum <= measurement.value <= maximum:
        raise HTTPException(
            status_code=400,
            detail=f"{metric} must be between {minimum:g} and {maximum:g} {unit}"
        )

    captured_at = to_wall_clock(measurement.captured_at) or get_user_now(tz_offset)

    try:
        print(f"⚖️ Saving {metric} measurement: {measurement.value} {unit} for user {user_id}")
        created = await store.create_measurement(user_id, metric, measurement.value, captured_at)
    except Exception as e:
        print(f"❌ Error saving {metric} measurement: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to save {metric} measurement")

    return MeasurementResponse(
        id=created['id'],
        metric=metric,
        value=float(created.get('value', measurement.value)),
        captured_at=created.get('captured_at'),
        recorded_at=created.get('recorded_at'),
    )


@router.get("/{metric}/history", response_model=HistoryResponse)
async def get_measurement_history(
    metric: str = Depends(check_metric),
    range_: Optional[str] = Query(None, alias="range", description="7d, 30d, 90d ... or all"),
    start: Optional[date] = Query(None, description="YYYY-MM-DD"),
    end: Optional[date] = Query(None, description="YYYY-MM-DD"),
    max_points: Optional[int] = Query(None, description="Maximum number of chart points"),
    user_id: str = Depends(get_current_user_id),
    tz_offset: int = Depends(get_timezone_offset),
    store=Depends(get_measurement_store),
):
    """Chart points (oldest first) and trend for the selected range"""
    unit = METRIC_LIMITS[metric][0]
    engine = MeasurementHistoryEngine(store, metric, clock=lambda: get_user_now(tz_offset))

    try:
        history_filter = build_history_filter(range_, start, end)
        history = await engine.fetch_history(user_id, history_filter, max_points)
    except InvalidFilter as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotAuthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))
    except RetrievalFailed as e:
        print(f"❌ Error getting {metric} history: {e}")
        raise HTTPException(status_code=503, detail=f"Failed to load {metric} history, please try again")

    print(f"✅ Returning {len(history.points)} {metric} points ({history.matched_count} matched)")
    return HistoryResponse(
        history=history,
        unit=unit,
        message="No measurements in range" if history.is_empty else None,
    )


@router.delete("/{metric}/{measurement_id}")
async def delete_measurement(
    measurement_id: str,
    metric: str = Depends(check_metric),
    user_id: str = Depends(get_current_user_id),
    store=Depends(get_measurement_store),
):
    """Delete a measurement by id"""
    try:
        deleted = await store.delete_measurement(user_id, metric, measurement_id)
    except Exception as e:
        print(f"❌ Error deleting {metric} measurement: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to delete {metric} measurement")

    if not deleted:
        raise HTTPException(status_code=404, detail="Measurement not found")

    print(f"✅ Deleted {metric} measurement {measurement_id}")
    return {"success": True, "message": "Measurement deleted successfully"}
