"""
Request payloads for the Roomtour API.

Field names are camelCase to match the documents stored in Firestore and the
JSON the web client sends.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

BusinessType = Literal["solo_agent", "agency", "property_management", "other"]


class _PartialPatch(BaseModel):
    """PATCH bodies: every field optional, but at least one must be present."""

    @model_validator(mode="after")
    def _not_empty(self):
        if not self.model_dump(exclude_none=True):
            raise ValueError("At least one field required")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


# ───────────────────────── Spaces ─────────────────────────
class CreateSpaceIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    address: str = Field("", max_length=500)
    description: str = Field("", max_length=2000)
    imageCount: int = Field(1, ge=1, le=50)


class UpdateSpaceIn(_PartialPatch):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = Field(None, max_length=2000)


# ───────────────────────── Tours ─────────────────────────
class CreateTourIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    address: str = Field("", max_length=500)
    description: str = Field("", max_length=2000)


class UpdateTourIn(_PartialPatch):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = Field(None, max_length=2000)
    isPublic: Optional[bool] = None


class AddRoomIn(BaseModel):
    spaceId: str = Field(min_length=1)
    label: str = Field(min_length=1, max_length=200)


class ReorderRoomsIn(BaseModel):
    spaceIds: List[str]


# ───────────────────────── Auth / profile ─────────────────────────
class SessionIn(BaseModel):
    token: str = Field(min_length=1)


class OnboardingIn(BaseModel):
    businessType: BusinessType


class UpdateProfileIn(_PartialPatch):
    displayName: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    companyName: Optional[str] = Field(None, max_length=200)
    businessType: Optional[BusinessType] = None


# ───────────────────────── Teams ─────────────────────────
class TeamNameIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class JoinTeamIn(BaseModel):
    inviteCode: str = Field(min_length=1, max_length=20)


class SwitchTeamIn(BaseModel):
    teamId: str = Field(min_length=1)


class UpdateInviteIn(BaseModel):
    enabled: bool
