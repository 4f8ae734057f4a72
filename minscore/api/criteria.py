"""Criteria editor API routes.

Stateless: the host sends the stored criteria value, read-only flag and
project id with each call and persists the returned newValue itself.
"""

from __future__ import annotations

import math
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from minscore.errors import InvalidMinScoreError
from minscore.schemas.criteria import Criteria
from minscore.schemas.editor import (
    DimensionChangeRequest,
    EditResponse,
    GroupOut,
    MinScoreChangeRequest,
    OptionOut,
    ViewRequest,
    ViewResponse,
)
from minscore.schemas.taxonomy import Option
from minscore.services.criteria_editor import CriteriaEditor
from minscore.services.criteria_state import CriteriaStateController, InMemoryCriteriaStore
from minscore.services.taxonomy_cache import RemoteTaxonomyCache, get_taxonomy_cache

router = APIRouter()


def _option_out(option: Option) -> OptionOut:
    return OptionOut(label=option.label, value=option.value, group=option.group_name.value)


def _json_safe(value: dict[str, Any]) -> dict[str, Any]:
    """JSON has no NaN or Infinity; send them as null."""
    return {
        k: None if isinstance(v, float) and not math.isfinite(v) else v for k, v in value.items()
    }


def _edit_response(stored: dict[str, Any] | None, result: Criteria | None) -> EditResponse:
    """Echo the host value untouched when nothing was submitted."""
    if result is None:
        return EditResponse(new_value=stored or {}, changed=False)
    return EditResponse(new_value=_json_safe(result.to_stored()), changed=True)


@router.post("/view", response_model=ViewResponse, response_model_by_alias=True)
async def api_criteria_view(
    data: ViewRequest,
    cache: RemoteTaxonomyCache = Depends(get_taxonomy_cache),
) -> ViewResponse:
    """Grouped dimension/trait options with the current selection resolved."""
    store = InMemoryCriteriaStore(data.value, data.is_read_only, data.project_id)
    view = await CriteriaEditor(store, cache=cache).load()
    if view is None:
        raise HTTPException(status_code=409, detail="Editor context changed during load")
    return ViewResponse(
        groups=[
            GroupOut(label=g.name.value, options=[_option_out(o) for o in g.options])
            for g in view.groups
        ],
        selected_option=_option_out(view.selected_option) if view.selected_option else None,
        selected_dim=view.selected_dim,
        min_score_text=view.min_score_text,
        is_read_only=view.is_read_only,
        dimensions_stale=view.dimensions_stale,
        traits_stale=view.traits_stale,
        errors=list(view.errors),
    )


@router.post("/dimension", response_model=EditResponse, response_model_by_alias=True)
def api_change_dimension(data: DimensionChangeRequest) -> EditResponse:
    """Apply a selection change to the stored criteria."""
    store = InMemoryCriteriaStore(data.value, data.is_read_only)
    result = CriteriaStateController(store).apply_dimension_change(data.new_value)
    return _edit_response(data.value, result)


@router.post("/min-score", response_model=EditResponse, response_model_by_alias=True)
def api_change_min_score(data: MinScoreChangeRequest) -> EditResponse:
    """Apply a threshold change to the stored criteria."""
    store = InMemoryCriteriaStore(data.value, data.is_read_only)
    try:
        result = CriteriaStateController(store).apply_min_score_change(data.raw_input)
    except InvalidMinScoreError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _edit_response(data.value, result)
