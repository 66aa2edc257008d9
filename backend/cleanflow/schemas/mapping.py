from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class MappingBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    external_code: str = Field(..., min_length=1)
    internal_name: str = Field(..., min_length=1)
    internal_number: str = Field(..., min_length=1)
    setor: Optional[str] = None
    type: str = 'leito'


class MappingCreate(MappingBase):
    pass


class MappingUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    internal_name: Optional[str] = Field(None, min_length=1)
    internal_number: Optional[str] = Field(None, min_length=1)
    setor: Optional[str] = None
    type: Optional[str] = None


class MappingToggle(BaseModel):
    is_active: bool


class MappingInDB(MappingBase):
    id: int
    location_id: Optional[str] = None
    short_code: Optional[str] = None
    qr_code_url: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
