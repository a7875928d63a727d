"""Boundary validation for envelope metadata."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Annotated

from pydantic import AwareDatetime, BaseModel, ConfigDict, StringConstraints, ValidationError

from .meta import EnvelopeKind, EnvelopeMeta

_Required = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class _MetaRules(BaseModel):
    model_config = ConfigDict(extra="forbid")

    envelope_id: _Required
    trace_id: _Required
    parent_id: str
    timestamp: AwareDatetime
    kind: EnvelopeKind
    source: _Required
    principal: _Required


def validate_meta(meta: EnvelopeMeta) -> None:
    """Raise ``ValueError`` naming the first missing or invalid field."""
    try:
        rules = _MetaRules.model_validate(asdict(meta))
    except ValidationError as exc:
        field = str(exc.errors()[0].get("loc", ("metadata",))[0])
        if field == "timestamp" and isinstance(meta.timestamp, datetime):
            raise ValueError("metadata.timestamp must be timezone-aware") from None
        raise ValueError(f"metadata.{field} is required") from None
    if rules.kind == EnvelopeKind.UNSPECIFIED:
        raise ValueError("metadata.kind must be specified")
