"""Build ordered option groups from dimensions and traits.

Dimensions are classified and bucketed into Signal, Audience, Intent and
Enrichment; traits go to Trait. Groups come out in that order, empty groups
omitted, options in arrival order. Pure: results are memoized on the input
tuples, so repeated calls with equal inputs return the same groups.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable

from minscore.schemas.taxonomy import (
    Group,
    GroupName,
    Option,
    RawDimension,
    RawTrait,
    SemanticType,
    Trait,
)
from minscore.taxonomy.classifier import classify_dimension

# Canonical order for dimension groups; Trait always follows.
DIMENSION_GROUP_ORDER: tuple[tuple[SemanticType, GroupName], ...] = (
    (SemanticType.SIGNAL, GroupName.SIGNAL),
    (SemanticType.AUDIENCE, GroupName.AUDIENCE),
    (SemanticType.INTENT, GroupName.INTENT),
    (SemanticType.ENRICHMENT, GroupName.ENRICHMENT),
)


def build_option_groups(
    dimensions: Iterable[RawDimension],
    traits: Iterable[RawTrait],
) -> tuple[Group, ...]:
    """Return non-empty option groups in canonical order."""
    return _build_cached(tuple(dimensions), tuple(traits))


@lru_cache(maxsize=32)
def _build_cached(
    dimensions: tuple[RawDimension, ...],
    traits: tuple[RawTrait, ...],
) -> tuple[Group, ...]:
    group_names = dict(DIMENSION_GROUP_ORDER)
    buckets: dict[SemanticType, list[Option]] = {st: [] for st, _ in DIMENSION_GROUP_ORDER}

    for raw in dimensions:
        dim = classify_dimension(raw)
        buckets[dim.semantic_type].append(
            Option(
                label=dim.display_name,
                value=dim.id,
                group_name=group_names[dim.semantic_type],
                source=dim,
            )
        )

    trait_options = []
    for raw in traits:
        trait = Trait.from_raw(raw)
        trait_options.append(
            Option(
                label=trait.display_name,
                value=trait.id,
                group_name=GroupName.TRAIT,
                source=trait,
            )
        )

    groups = [
        Group(name=group_name, options=tuple(buckets[st]))
        for st, group_name in DIMENSION_GROUP_ORDER
        if buckets[st]
    ]
    if trait_options:
        groups.append(Group(name=GroupName.TRAIT, options=tuple(trait_options)))
    return tuple(groups)


def clear_option_cache() -> None:
    _build_cached.cache_clear()
