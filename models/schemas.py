# models/schemas.py
from pydantic import BaseModel, Field
from typing import Optional

GENDER_PATTERN = "^(male|female|other|prefer-not-to-say)$"

class ProfileComplete(BaseModel):
    """For the complete-profile step after registration"""
    age: int = Field(..., ge=1, le=120)
    gender: str = Field(..., pattern=GENDER_PATTERN)
    height: float = Field(..., ge=50, le=250, description="Height in cm")

class ProfileUpdate(BaseModel):
    """For single-field profile edits"""
    age: Optional[int] = Field(None, ge=1, le=120)
    gender: Optional[str] = Field(None, pattern=GENDER_PATTERN)
    height: Optional[float] = Field(None, ge=50, le=250)

class ProfileResponse(BaseModel):
    id: str
    age: Optional[int] = None
    gender: Optional[str] = None
    height: Optional[float] = None
    profile_complete: bool = False
    updated_at: Optional[str] = None
