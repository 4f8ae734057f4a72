"""Min-score criteria editor: options view plus edit operations.

Loads dimensions and traits concurrently through the taxonomy cache, builds
option groups, resolves the current selection and exposes the two edits.
Changing credentials or detaching bumps a generation counter; a load that
was in flight across such a change returns None instead of a view.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from minscore.config import get_settings
from minscore.schemas.criteria import Criteria
from minscore.schemas.taxonomy import Group, Option
from minscore.services.criteria_state import CriteriaStateController, CriteriaStore
from minscore.services.option_aggregator import build_option_groups
from minscore.services.selection_resolver import resolve_selection
from minscore.services.taxonomy_cache import RemoteTaxonomyCache, get_taxonomy_cache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditorView:
    """Everything the selection widget and threshold input need to render."""

    groups: tuple[Group, ...]
    selected_option: Optional[Option]
    selected_dim: str
    min_score_text: str
    is_read_only: bool
    is_loading: bool = False
    dimensions_stale: bool = False
    traits_stale: bool = False
    errors: tuple[str, ...] = field(default_factory=tuple)


class CriteriaEditor:
    def __init__(
        self,
        store: CriteriaStore,
        cache: RemoteTaxonomyCache | None = None,
        api_key: str | None = None,
        strict_min_score: bool | None = None,
    ) -> None:
        self.store = store
        self.cache = cache or get_taxonomy_cache()
        self.api_key = api_key if api_key is not None else get_settings().uniform_api_key
        self.controller = CriteriaStateController(store, strict_min_score=strict_min_score)
        self._generation = 0
        self._detached = False

    @property
    def is_read_only(self) -> bool:
        return self.store.is_read_only

    def set_api_key(self, api_key: str) -> None:
        """Switch credentials; loads started under the old key are discarded."""
        if api_key != self.api_key:
            self.api_key = api_key
            self._generation += 1

    def detach(self) -> None:
        """Stop accepting load results (the consumer has gone away)."""
        self._detached = True
        self._generation += 1

    async def load(self) -> EditorView | None:
        """Fetch both collections and return the current view.

        Returns None when the editor was detached or its credentials changed
        while the fetches were running.
        """
        if self._detached:
            return None
        generation = self._generation
        project_id = self.store.project_id

        dims_result, traits_result = await asyncio.gather(
            self.cache.fetch_dimensions(project_id, self.api_key),
            self.cache.fetch_traits(project_id, self.api_key),
        )

        if generation != self._generation:
            logger.debug("Discarding taxonomy load for %s: editor context changed", project_id)
            return None

        errors = tuple(str(r.error) for r in (dims_result, traits_result) if r.error is not None)
        groups = build_option_groups(dims_result.items, traits_result.items)
        return self._view(
            groups,
            dimensions_stale=dims_result.is_stale,
            traits_stale=traits_result.is_stale,
            errors=errors,
        )

    def loading_view(self) -> EditorView:
        """View to render before the first load completes."""
        return self._view((), is_loading=True)

    def select(self, new_value: str | None) -> Criteria | None:
        return self.controller.apply_dimension_change(new_value)

    def set_min_score(self, raw_input: str) -> Criteria | None:
        return self.controller.apply_min_score_change(raw_input)

    def _view(self, groups: tuple[Group, ...], **flags) -> EditorView:
        return EditorView(
            groups=groups,
            selected_option=resolve_selection(self.controller.selected_dim, groups),
            selected_dim=self.controller.selected_dim,
            min_score_text=self.controller.min_score_text,
            is_read_only=self.store.is_read_only,
            **flags,
        )
