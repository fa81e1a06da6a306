"""
Domain models for collate.

Defines the user record served by the demo dataset and aligned with
`db/init.sql`. Loaders can return any record type; this one is what the
reference loaders and the CLI use.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from pydantic import BaseModel, Field


class User(BaseModel):
    """
    Representation of a single row in the `users` table.
    """

    id: int = Field(..., description="Primary key.")
    name: str = Field(..., description="Display name, may contain diacritics.")
    email: str = Field(..., description="Contact address.")
    city: str = Field("", description="City of residence.")
    role: str = Field("user", description="Role label used by the select filter.")
    active: bool = Field(True, description="Whether the account is active.")
    created_at: datetime = Field(..., description="Account creation timestamp.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }


def field_value(record: Any, name: str) -> Any:
    """Read ``name`` from a mapping or an attribute object; missing reads as None."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


__all__ = ["User", "field_value"]
