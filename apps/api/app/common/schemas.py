"""Shared pydantic bases."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator


class InputModel(BaseModel):
    """Request body whose empty strings mean "no value"."""

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value
