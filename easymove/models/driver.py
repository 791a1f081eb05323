from sqlalchemy import Column, String, Integer, Boolean, Enum
from easymove.models.base import BaseModel
from easymove.core.enums import VanSize


class Driver(BaseModel):
    __tablename__ = "drivers"

    name = Column(String(128), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(32), nullable=False)
    experience_years = Column(Integer, nullable=False, default=0)
    van_type = Column(Enum(VanSize), nullable=False)
    location = Column(String(128), nullable=False)
    is_approved = Column(Boolean, nullable=False, default=False)
