from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime
from easymove.core.enums import VanSize


class DriverRegister(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    email: EmailStr
    phone: str = Field(min_length=6, max_length=32)
    experience_years: int = Field(0, ge=0, le=60)
    van_type: VanSize = VanSize.MEDIUM
    location: str = Field(min_length=2, max_length=128)


class DriverOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str
    experience_years: int
    van_type: VanSize
    location: str
    is_approved: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
