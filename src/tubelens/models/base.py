"""Shared base model definitions for tubelens domain objects."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class TubeLensBaseModel(BaseModel):
    """Base model configured for tubelens-wide defaults."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class FrozenModel(TubeLensBaseModel):
    """Immutable variant for values shared between pipeline stages."""

    model_config = ConfigDict(extra="forbid", frozen=True)


__all__ = ["FrozenModel", "TubeLensBaseModel"]
