"""Taxonomy records and option-group schemas.

Raw* models mirror the remote taxonomy API payloads. Dimension, Trait,
Option and Group are the classified, frozen forms handed to the rendering
layer; they are hashable so aggregation can be memoized on its inputs.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SemanticType(str, Enum):
    """Semantic type assigned to a dimension by the classifier."""

    SIGNAL = "signal"
    AUDIENCE = "audience"
    INTENT = "intent"
    ENRICHMENT = "enrichment"


class GroupName(str, Enum):
    """Option group names, declared in canonical display order."""

    SIGNAL = "Signal"
    AUDIENCE = "Audience"
    INTENT = "Intent"
    ENRICHMENT = "Enrichment"
    TRAIT = "Trait"


class ResourceKind(str, Enum):
    """Remote collections held by the taxonomy cache."""

    DIMENSIONS = "dimensions"
    TRAITS = "traits"


# ── Wire records ───────────────────────────────────────────────────────────


class RawDimension(BaseModel):
    """Dimension as returned by the remote API.

    category is a free string (normally AGG, ENR or SIG) so unknown values
    reach the classifier fallback instead of failing validation.
    A null category or name reads as empty, so one such record does not fail
    the whole feed.
    """

    model_config = ConfigDict(frozen=True)

    dim: str = Field(..., min_length=1)
    category: str = ""
    subcategory: Optional[str] = None
    name: str = ""
    min: Optional[float] = None
    cap: Optional[float] = None

    @field_validator("category", "name", mode="before")
    @classmethod
    def _null_as_empty(cls, v):
        return "" if v is None else v


class RawTrait(BaseModel):
    """Discrete trait (quirk) as returned by the remote API."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: Optional[str] = None


# ── Classified records ─────────────────────────────────────────────────────


class Dimension(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    semantic_type: SemanticType


class Trait(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str

    @classmethod
    def from_raw(cls, raw: RawTrait) -> "Trait":
        """Build a Trait, labelling it by id when the name is missing or empty."""
        return cls(id=raw.id, display_name=raw.name or raw.id)


class Option(BaseModel):
    """A selectable entry in an option group. value is the source record id."""

    model_config = ConfigDict(frozen=True)

    label: str
    value: str
    group_name: GroupName
    source: Union[Dimension, Trait]


class Group(BaseModel):
    """A named, non-empty, ordered bucket of options."""

    model_config = ConfigDict(frozen=True)

    name: GroupName
    options: tuple[Option, ...]
