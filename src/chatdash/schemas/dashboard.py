"""Pydantic schemas for dashboard shortcuts and app settings."""

from pydantic import BaseModel, Field


# ─── Dynamic URLs ───────────────────────────────────────

class DynamicUrlCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    url: str = Field(..., min_length=1, pattern=r"^https?://")
    icon: str = Field(..., min_length=1, max_length=100)


class DynamicUrlRead(BaseModel):
    id: int
    name: str
    url: str
    icon: str

    model_config = {"from_attributes": True}


# ─── App settings ───────────────────────────────────────

class AppSettingUpdate(BaseModel):
    value: str


class AppSettingRead(BaseModel):
    id: int
    key: str
    value: str

    model_config = {"from_attributes": True}
