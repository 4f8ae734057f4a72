"""Taxonomy classification for remote dimensions.

Maps the remote category/subcategory pair to a semantic type. Unknown
categories fall back to signal.
"""

from __future__ import annotations

from minscore.taxonomy.classifier import classify, classify_dimension

__all__ = ["classify", "classify_dimension"]
