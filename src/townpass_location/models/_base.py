"""Base model for payloads exchanged with the application layer.

Every payload model inherits from :class:`TownpassBaseModel` which
provides ``alias_generator=to_camel`` so the camelCase keys used on the
wire (``capturedAt``) map to snake_case fields, while still accepting
the snake_case names when constructing models in Python.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TownpassBaseModel(BaseModel):
    """Frozen camelCase-aliased base model."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_payload(self) -> dict[str, Any]:
        """Dump using wire (camelCase) keys."""
        return self.model_dump(by_alias=True, mode="json")
