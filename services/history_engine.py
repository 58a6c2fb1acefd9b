# services/history_engine.py
"""
Measurement history queries for the weight and body-fat charts.

The engine reads one bounded, newest-first slice of a user's measurements
from the store, resolves every record's capture instant once, and turns the
slice into chronological chart points plus an endpoint trend. It owns no
state between calls; the store and the clock are handed in by the caller.

The store only needs:
    await store.query_measurements(user_id, metric, start, end, limit)
        -> list of raw rows, newest first
    await store.watch_measurements(user_id, metric)
        -> async iterator yielding on every later change (only for watch_history)
"""
import os
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple, Union

from models.measurement_schemas import ChartPoint, HistoryResult, TrendSummary
from utils.timezone_utils import (
    end_of_day,
    format_chart_label,
    parse_legacy_id,
    start_of_day,
    to_wall_clock,
)

DEFAULT_MAX_POINTS = int(os.getenv("HISTORY_DEFAULT_POINTS", "10"))
MAX_POINTS_LIMIT = int(os.getenv("HISTORY_MAX_POINTS", "500"))

PRESET_ALL = "all"
_PRESET_DAYS = re.compile(r"^(\d+)d$")


class HistoryError(Exception):
    """Base class for failures surfaced by fetch_history."""


class InvalidFilter(HistoryError):
    """Caller supplied a bad range or point cap. Not retryable."""


class NotAuthenticated(HistoryError):
    """No user to query for."""


class RetrievalFailed(HistoryError):
    """The store query failed. The caller may offer a manual retry."""


@dataclass(frozen=True)
class HistoryFilter:
    """Either a trailing preset window ("7d", "all") or a closed date interval."""
    preset: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def __post_init__(self):
        has_interval = self.start_date is not None or self.end_date is not None
        if self.preset is not None and has_interval:
            raise InvalidFilter("Use either a preset range or a date interval, not both")
        if self.preset is None and not has_interval:
            raise InvalidFilter("A preset range or a date interval is required")

        if self.preset is not None:
            if self.preset != PRESET_ALL:
                match = _PRESET_DAYS.match(self.preset)
                if not match or int(match.group(1)) <= 0:
                    raise InvalidFilter(f"Unknown range preset: {self.preset!r}")
            return

        if self.start_date is None or self.end_date is None:
            raise InvalidFilter("A date interval needs both a start and an end date")
        if self.start_date > self.end_date:
            raise InvalidFilter(
                f"Start date {self.start_date.isoformat()} is after end date {self.end_date.isoformat()}"
            )

    @classmethod
    def preset_window(cls, preset: str) -> "HistoryFilter":
        return cls(preset=(preset or "").strip().lower())

    @classmethod
    def interval(cls, start_date: date, end_date: date) -> "HistoryFilter":
        return cls(start_date=start_date, end_date=end_date)

    def bounds(self, now: datetime) -> Tuple[Optional[datetime], Optional[datetime]]:
        """Resolve to inclusive (lower, upper) wall-clock bounds; None means open."""
        if self.preset == PRESET_ALL:
            return None, None
        if self.preset is not None:
            days = int(_PRESET_DAYS.match(self.preset).group(1))
            try:
                return now - timedelta(days=days), now
            except OverflowError:
                raise InvalidFilter(f"Range preset {self.preset!r} reaches past the earliest date")
        return start_of_day(self.start_date), end_of_day(self.end_date)


# Capture instant, resolved once per record when it comes out of the store.

@dataclass(frozen=True)
class ExplicitInstant:
    instant: datetime


@dataclass(frozen=True)
class LegacyEncoded:
    raw: str
    instant: datetime


@dataclass(frozen=True)
class Unresolvable:
    raw: str
    instant = None


CaptureInstant = Union[ExplicitInstant, LegacyEncoded, Unresolvable]


def resolve_capture_instant(record: Dict[str, Any]) -> CaptureInstant:
    """
    Explicit timestamp field first, then the legacy id encoding
    (YYYY-MM-DDThh_mm_...), otherwise unresolvable.
    """
    explicit = record.get("captured_at")
    if explicit is None:
        explicit = record.get("timestamp")
    instant = to_wall_clock(explicit)
    if instant is not None:
        return ExplicitInstant(instant)

    record_id = str(record.get("id") or "")
    legacy = parse_legacy_id(record_id)
    if legacy is not None:
        return LegacyEncoded(record_id, legacy)
    return Unresolvable(record_id)


@dataclass(frozen=True)
class MeasurementRecord:
    id: str
    value: Optional[float]
    capture: CaptureInstant
    recorded_at: Optional[datetime] = None

    @property
    def instant(self) -> Optional[datetime]:
        return self.capture.instant

    @property
    def plottable(self) -> bool:
        return self.instant is not None and self.value is not None


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def normalize_record(raw: Dict[str, Any], metric: str) -> MeasurementRecord:
    # Legacy rows stored the value under the metric name ("weight", "fat").
    value = raw.get("value")
    if value is None:
        value = raw.get(metric)
    return MeasurementRecord(
        id=str(raw.get("id") or ""),
        value=_to_float(value),
        capture=resolve_capture_instant(raw),
        recorded_at=to_wall_clock(raw.get("recorded_at") or raw.get("created_at")),
    )


def compute_trend(chronological: List[MeasurementRecord]) -> TrendSummary:
    """Percentage change from the oldest to the newest record."""
    if len(chronological) < 2:
        return TrendSummary(direction="none", magnitude=0.0)

    oldest = chronological[0].value
    newest = chronological[-1].value
    difference = newest - oldest
    direction = "down" if difference < 0 else "up"
    if oldest == 0:
        return TrendSummary(direction=direction, magnitude=0.0)
    return TrendSummary(
        direction=direction,
        magnitude=round(abs(difference) / oldest * 100, 1),
    )


def to_chart_point(record: MeasurementRecord) -> ChartPoint:
    return ChartPoint(
        id=record.id,
        label=format_chart_label(record.instant),
        value=record.value,
        captured_at=record.instant,
    )


class MeasurementHistoryEngine:
    def __init__(
        self,
        store,
        metric: str = "weight",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.metric = metric
        self.clock = clock or datetime.now

    def _resolve_limit(self, max_points: Optional[int]) -> int:
        if max_points is None:
            return DEFAULT_MAX_POINTS
        if isinstance(max_points, bool) or not isinstance(max_points, int) or max_points <= 0:
            raise InvalidFilter(f"max_points must be a positive integer, got {max_points!r}")
        return min(max_points, MAX_POINTS_LIMIT)

    async def fetch_history(
        self,
        user_id: Optional[str],
        history_filter: HistoryFilter,
        max_points: Optional[int] = None,
    ) -> HistoryResult:
        if not user_id:
            raise NotAuthenticated("Sign in to view your measurement history")
        if not isinstance(history_filter, HistoryFilter):
            raise InvalidFilter("history_filter must be a HistoryFilter")
        limit = self._resolve_limit(max_points)
        start, end = history_filter.bounds(self.clock())

        try:
            rows = await self.store.query_measurements(
                user_id, self.metric, start=start, end=end, limit=limit
            )
        except Exception as e:
            raise RetrievalFailed(f"Failed to load {self.metric} history: {e}") from e

        records = [normalize_record(row, self.metric) for row in rows]
        plottable = [r for r in records if r.plottable]
        # Newest first from the store; sort on the resolved instant so legacy
        # ids and explicit timestamps interleave correctly, then trim and flip.
        plottable.sort(key=lambda r: r.instant, reverse=True)
        chronological = list(reversed(plottable[:limit]))

        return HistoryResult(
            metric=self.metric,
            points=[to_chart_point(r) for r in chronological],
            trend=compute_trend(chronological),
            matched_count=len(records),
        )

    async def watch_history(
        self,
        user_id: Optional[str],
        history_filter: HistoryFilter,
        max_points: Optional[int] = None,
    ) -> AsyncIterator[HistoryResult]:
        """Yield a snapshot now and a fresh one after every store change."""
        if not user_id:
            raise NotAuthenticated("Sign in to view your measurement history")
        # Subscribe before the first read so no change slips in between.
        try:
            changes = await self.store.watch_measurements(user_id, self.metric)
        except Exception as e:
            raise RetrievalFailed(f"Failed to watch {self.metric} history: {e}") from e

        yield await self.fetch_history(user_id, history_filter, max_points)

        while True:
            try:
                await changes.__anext__()
            except StopAsyncIteration:
                return
            except Exception as e:
                raise RetrievalFailed(f"Failed to watch {self.metric} history: {e}") from e
            yield await self.fetch_history(user_id, history_filter, max_points)
