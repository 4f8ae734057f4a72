"""Remote taxonomy API access."""

from __future__ import annotations

from minscore.context_api.base import TaxonomySource
from minscore.context_api.client import ContextApiClient

__all__ = ["ContextApiClient", "TaxonomySource"]
