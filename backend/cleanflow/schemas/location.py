from datetime import datetime
from typing import Optional, Literal, Any
from pydantic import BaseModel, Field

LocationStatus = Literal['available', 'occupied', 'in_cleaning']
CleaningType = Literal['concurrent', 'terminal']


class CandidateLocation(BaseModel):
    """Typed output of the record transformer, one per accepted external row."""
    name: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1)
    status: LocationStatus
    external_code: str
    external_status: str
    last_external_update: datetime


class CurrentCleaning(BaseModel):
    type: str
    user_id: Optional[Any] = None
    user_name: Optional[str] = None
    start_time: datetime


class LocationResponse(BaseModel):
    id: int
    name: str
    number: str
    status: LocationStatus
    external_code: Optional[str] = None
    location_type: str
    current_cleaning: Optional[CurrentCleaning] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StartCleaningRequest(BaseModel):
    type: CleaningType


class CleaningActionResult(BaseModel):
    success: bool
    message: str
    delayed: Optional[bool] = None
    actual_duration: Optional[int] = None


class CleaningOccurrenceResponse(BaseModel):
    id: int
    location_name: str
    cleaning_type: str
    user_name: Optional[str] = None
    delay_in_minutes: int
    occurred_at: datetime

    class Config:
        from_attributes = True
