"""
app/schemas/line.py

Purpose: Request bodies for the LINE admin endpoints
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class PushRequest(BaseModel):
    to: str = Field(..., min_length=1, description="LINE user id")
    text: str = Field(..., min_length=1, max_length=5000)


class LinkAcceptRequest(BaseModel):
    tenant_id: Optional[str] = Field(None, alias="tenantId")
    user_id: Optional[str] = Field(None, alias="userId")

    model_config = {"populate_by_name": True}


class LinkRejectRequest(BaseModel):
    user_id: Optional[str] = Field(None, alias="userId")

    model_config = {"populate_by_name": True}


class RoleMappingRequest(BaseModel):
    user_id: str = Field(..., alias="userId")
    role: str

    model_config = {"populate_by_name": True}


class MoveoutDueRequest(BaseModel):
    day: Optional[date] = Field(None, alias="date", description="Move-out date, default today")

    model_config = {"populate_by_name": True}
