"""Request/response schemas for the criteria editor API."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CriteriaContext(BaseModel):
    """Stored criteria value and read-only flag supplied by the host editor."""

    model_config = ConfigDict(populate_by_name=True)

    value: Optional[dict[str, Any]] = None
    is_read_only: bool = Field(False, alias="isReadOnly")


class ViewRequest(CriteriaContext):
    project_id: str = Field("", alias="projectId", max_length=255)


class DimensionChangeRequest(CriteriaContext):
    new_value: Optional[str] = Field(None, alias="newValue")


class MinScoreChangeRequest(CriteriaContext):
    raw_input: str = Field("", alias="rawInput")


class OptionOut(BaseModel):
    label: str
    value: str
    group: str


class GroupOut(BaseModel):
    label: str
    options: list[OptionOut]


class ViewResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    groups: list[GroupOut]
    selected_option: Optional[OptionOut] = Field(None, serialization_alias="selectedOption")
    selected_dim: str = Field("", serialization_alias="selectedDim")
    min_score_text: str = Field("", serialization_alias="minScoreText")
    is_read_only: bool = Field(False, serialization_alias="isReadOnly")
    dimensions_stale: bool = Field(False, serialization_alias="dimensionsStale")
    traits_stale: bool = Field(False, serialization_alias="traitsStale")
    errors: list[str] = []


class EditResponse(BaseModel):
    """newValue is the record the host should persist; under read-only it is the
    received value, unchanged, and changed is False."""

    new_value: dict[str, Any] = Field(..., serialization_alias="newValue")
    changed: bool
