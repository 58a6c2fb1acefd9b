# services/history_state.py
from typing import Optional

from models.measurement_schemas import HistoryResult
from services.history_engine import HistoryError, HistoryFilter, MeasurementHistoryEngine, RetrievalFailed

IDLE = "idle"
LOADING = "loading"
READY = "ready"
FAILED = "failed"


class HistoryRequestState:
    """
    Request lifecycle for one history view: idle -> loading -> ready | failed.

    Overlapping loads are resolved last-request-wins: a response is applied
    only if no newer load() or abandon() happened while it was in flight.
    Superseded requests are left to finish; their results are dropped.
    """

    def __init__(self, engine: MeasurementHistoryEngine):
        self.engine = engine
        self.status = IDLE
        self.data: Optional[HistoryResult] = None
        self.error: Optional[HistoryError] = None
        self._generation = 0

    @property
    def is_empty(self) -> bool:
        """Ready with nothing to plot - shown as "no data in range", not as an error."""
        return self.status == READY and self.data is not None and self.data.is_empty

    async def load(
        self,
        user_id: Optional[str],
        history_filter: HistoryFilter,
        max_points: Optional[int] = None,
    ) -> bool:
        """Run a fetch; returns False when the outcome was discarded as stale."""
        self._generation += 1
        token = self._generation
        self.status = LOADING

        try:
            result = await self.engine.fetch_history(user_id, history_filter, max_points)
        except HistoryError as e:
            return self._fail(token, e)
        except Exception as e:
            error = RetrievalFailed(f"Failed to load history: {e}")
            error.__cause__ = e
            return self._fail(token, error)

        if token != self._generation:
            return False
        self.status = READY
        self.data = result
        self.error = None
        return True

    def _fail(self, token: int, error: HistoryError) -> bool:
        if token != self._generation:
            return False
        self.status = FAILED
        self.data = None
        self.error = error
        return True

    def abandon(self):
        """Forget in-flight requests, e.g. when the view goes away."""
        self._generation += 1
        if self.status == LOADING:
            self.status = IDLE
