# models/measurement_schemas.py
from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Dict, Tuple
from datetime import datetime

# metric -> (unit, min, max) accepted when logging a new measurement
METRIC_LIMITS: Dict[str, Tuple[str, float, float]] = {
    "weight": ("kg", 30.0, 250.0),
    "fat": ("%", 5.0, 35.0),
}

class MeasurementCreate(BaseModel):
    value: float = Field(..., gt=0)
    captured_at: Optional[datetime] = Field(
        None, description="Wall-clock time the measurement was taken; defaults to now"
    )

class MeasurementResponse(BaseModel):
    id: str
    metric: str
    value: float
    captured_at: Optional[str] = None
    recorded_at: Optional[str] = None

class ChartPoint(BaseModel):
    id: str
    label: str
    value: float
    captured_at: datetime

class TrendSummary(BaseModel):
    direction: Literal["up", "down", "none"] = "none"
    magnitude: float = 0.0

class HistoryResult(BaseModel):
    """Chart-ready measurement history, oldest point first."""
    metric: str
    points: List[ChartPoint] = Field(default_factory=list)
    trend: TrendSummary = Field(default_factory=TrendSummary)
    matched_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.points

class HistoryResponse(BaseModel):
    success: bool = True
    history: HistoryResult
    unit: str
    message: Optional[str] = None
