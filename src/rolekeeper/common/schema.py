"""Shared Pydantic schema utilities."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base class for role and principal documents."""

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
        extra="ignore",
    )

    def document(self, *, exclude_none: bool = False, **kwargs: Any) -> dict[str, Any]:
        """Return the snake_case mapping stored by the persistence adapters."""

        return self.model_dump(exclude_none=exclude_none, by_alias=False, **kwargs)


__all__ = ["BaseSchema"]
