"""Resolve a persisted selection id to its option in the aggregated groups."""

from __future__ import annotations

from typing import Sequence

from minscore.schemas.taxonomy import Group, Option


def resolve_selection(selected_value: str | None, groups: Sequence[Group]) -> Option | None:
    """Return the first option whose value equals selected_value.

    Groups are scanned in the order given (canonical order when they come
    from build_option_groups), so on an id shared by a dimension and a trait
    the dimension group wins. Empty or missing values resolve to None
    without scanning.
    """
    if not selected_value:
        return None
    for group in groups:
        for option in group.options:
            if option.value == selected_value:
                return option
    return None
