from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ParkCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[str] = Field("active", max_length=20)
    locations: List[str] = Field(default_factory=list, description="Sub-locations within the park")
    waiver: Optional[str] = None


class ParkUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[str] = Field(None, max_length=20)
    locations: Optional[List[str]] = None
    waiver: Optional[str] = None


class ParkResponse(BaseModel):
    id: int
    name: str
    location: str
    description: Optional[str] = None
    status: Optional[str] = None
    locations: List[str] = Field(default_factory=list)
    waiver: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ParkStatusResponse(BaseModel):
    id: int
    name: str
    status: str
    location: str
