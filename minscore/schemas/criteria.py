"""Persisted min-score criteria record and the update payload sent to the host."""

from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Criteria(BaseModel):
    """Rule payload: a selected dimension/trait id and a minimum score.

    Values are kept exactly as the host stored them, whatever their type, and
    fields stored alongside these two are kept as extras, so a merge never
    drops or rewrites them. Only the display accessors treat a non-string dim
    or a non-numeric minScore as absent. Wire names are camelCase.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    dim: Any = None
    min_score: Any = Field(None, alias="minScore")

    @classmethod
    def from_stored(cls, value: dict[str, Any] | None) -> "Criteria":
        """Build Criteria from a host-stored value, which may be missing."""
        return cls.model_validate(value or {})

    def to_stored(self) -> dict[str, Any]:
        """Return the wire form with exactly the fields that were set."""
        return self.model_dump(by_alias=True, exclude_unset=True)

    def with_field(self, name: str, value: Any) -> "Criteria":
        """Return a copy with one wire field replaced; None removes the field."""
        stored = self.to_stored()
        if value is None:
            stored.pop(name, None)
        else:
            stored[name] = value
        return Criteria.from_stored(stored)

    @property
    def selected_dim(self) -> str:
        """Selected id for display and resolution; empty unless dim is a string."""
        return self.dim if isinstance(self.dim, str) else ""

    @property
    def score(self) -> Optional[float]:
        """minScore when it is a number, else None."""
        if isinstance(self.min_score, bool) or not isinstance(self.min_score, (int, float)):
            return None
        return float(self.min_score)

    @property
    def min_score_text(self) -> str:
        """Text shown in the threshold input; empty when unset or not a number."""
        score = self.score
        if score is None or math.isnan(score):
            return ""
        if score.is_integer():
            return str(int(score))
        return str(score)


class CriteriaUpdate(BaseModel):
    """Payload submitted to the host criteria store."""

    model_config = ConfigDict(populate_by_name=True)

    new_value: Criteria = Field(..., alias="newValue")
