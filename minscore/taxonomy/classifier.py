"""Category classifier for remote taxonomy dimensions.

Rules, first match wins:
- SIG -> signal
- ENR -> enrichment
- AGG with a subcategory containing "intent" (any case) -> intent
- AGG otherwise -> audience
- anything else -> signal
"""

from __future__ import annotations

import logging

from minscore.schemas.taxonomy import Dimension, RawDimension, SemanticType

logger = logging.getLogger(__name__)

CATEGORY_SIGNAL = "SIG"
CATEGORY_ENRICHMENT = "ENR"
CATEGORY_AGGREGATE = "AGG"

_INTENT_MARKER = "intent"


def classify(category: str, subcategory: str | None = None) -> SemanticType:
    """Return the semantic type for a category/subcategory pair.

    Total over all strings: an unrecognized category is reported as signal.
    """
    if category == CATEGORY_SIGNAL:
        return SemanticType.SIGNAL
    if category == CATEGORY_ENRICHMENT:
        return SemanticType.ENRICHMENT
    if category == CATEGORY_AGGREGATE:
        if subcategory and _INTENT_MARKER in subcategory.lower():
            return SemanticType.INTENT
        return SemanticType.AUDIENCE
    logger.debug("Unknown taxonomy category %r – classified as signal", category)
    return SemanticType.SIGNAL


def classify_dimension(raw: RawDimension) -> Dimension:
    """Classify a wire dimension into its display form."""
    return Dimension(
        id=raw.dim,
        display_name=raw.name,
        semantic_type=classify(raw.category, raw.subcategory),
    )
