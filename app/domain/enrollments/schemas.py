"""Enrollment schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_category, validate_email


class EnrollmentCreate(BaseModel):
    """Admin registers an existing user in a training category"""

    userEmail: str
    category: str
    trainingName: Optional[str] = None
    price: Optional[float] = None

    @field_validator("userEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return validate_category(v)

    @field_validator("price")
    @classmethod
    def check_price(cls, v):
        if v is not None and v < 0:
            raise ValueError("price cannot be negative")
        return v


class EnrollmentResponse(BaseModel):
    id: int
    userId: int
    userEmail: str
    userName: Optional[str] = None
    category: str
    trainingName: Optional[str] = None
    price: Optional[float] = None
    isActive: bool
    createdAt: Optional[datetime] = None

    class Config:
        from_attributes = True
