"""User profile and linked employee identity."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProfileSettings(BaseModel):
    """Per-user feedback toggles."""

    haptics: bool = True
    notifications: bool = True


class UserProfile(BaseModel):
    """Locally stored user profile."""

    name: str = ""
    currency: str = "USD"
    photo: str | None = None
    settings: ProfileSettings = Field(default_factory=ProfileSettings)


class Employee(BaseModel):
    """Employee identity returned by GET /empleados/{clave}."""

    model_config = ConfigDict(extra="ignore")

    cve_emple: str
    descri: str | None = None
    depto: str | None = None

    @field_validator("cve_emple", mode="before")
    @classmethod
    def validate_cve_emple(cls, v: Any) -> str:
        """Employee keys arrive as numbers from the ERP."""
        return str(v)
