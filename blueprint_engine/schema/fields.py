"""Reusable constrained field types for intake and blueprint models."""

from __future__ import annotations

from typing import Annotated

from pydantic import Field, StrictInt, StringConstraints

from blueprint_engine.schema.options import MAX_SESSION_MINUTES, MIN_SESSION_MINUTES

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
StringList = Annotated[list[NonBlankStr], Field(min_length=1)]
SessionMinutes = Annotated[StrictInt, Field(ge=MIN_SESSION_MINUTES, le=MAX_SESSION_MINUTES)]
SegmentMinutes = Annotated[StrictInt, Field(ge=1)]
