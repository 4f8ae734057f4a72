"""Apply user edits to the persisted min-score criteria record.

Edits are partial merges: changing the selection never touches minScore and
vice versa, and fields the host stored alongside them are preserved. In
read-only mode every edit is a no-op.

minScore conversion has two modes, chosen by the strict_min_score setting:
- compatible (default): unguarded conversion, malformed text is stored as NaN
- strict: malformed or non-finite text raises InvalidMinScoreError and the
  record is left unchanged
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Callable, Optional, Protocol

from minscore.config import get_settings
from minscore.errors import InvalidMinScoreError
from minscore.schemas.criteria import Criteria, CriteriaUpdate

logger = logging.getLogger(__name__)

_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|[+-]?Infinity")
_RADIX_RE = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")

CriteriaTransform = Callable[[Criteria], CriteriaUpdate]


class CriteriaStore(Protocol):
    """Host-owned criteria record with its editing context."""

    @property
    def is_read_only(self) -> bool: ...

    @property
    def project_id(self) -> str: ...

    def get_value(self) -> Criteria: ...

    def set_value(self, transform: CriteriaTransform) -> None: ...


class InMemoryCriteriaStore:
    """CriteriaStore held in memory. Keeps every submitted update in order."""

    def __init__(
        self,
        value: Criteria | dict[str, Any] | None = None,
        is_read_only: bool = False,
        project_id: str = "",
    ) -> None:
        if not isinstance(value, Criteria):
            value = Criteria.from_stored(value)
        self._value = value
        self._is_read_only = is_read_only
        self._project_id = project_id
        self.updates: list[CriteriaUpdate] = []

    @property
    def is_read_only(self) -> bool:
        return self._is_read_only

    @property
    def project_id(self) -> str:
        return self._project_id

    def get_value(self) -> Criteria:
        return self._value

    def set_value(self, transform: CriteriaTransform) -> None:
        update = transform(self._value)
        self.updates.append(update)
        self._value = update.new_value


def coerce_min_score(raw_input: str) -> float:
    """Unguarded numeric conversion of threshold text.

    Blank text is 0, decimal and exponent forms, signed Infinity and
    0x/0o/0b integer literals convert, anything else is NaN.
    """
    text = raw_input.strip()
    if not text:
        return 0.0
    if _DECIMAL_RE.fullmatch(text):
        return float(text)
    if _RADIX_RE.fullmatch(text):
        return float(int(text, 0))
    return math.nan


def parse_min_score_strict(raw_input: str) -> float:
    """Convert threshold text to a finite decimal number or raise."""
    text = raw_input.strip()
    if not text or not _DECIMAL_RE.fullmatch(text):
        raise InvalidMinScoreError(raw_input)
    value = float(text)
    if not math.isfinite(value):
        raise InvalidMinScoreError(raw_input)
    return value


class CriteriaStateController:
    """Applies selection and threshold edits to a CriteriaStore."""

    def __init__(self, store: CriteriaStore, strict_min_score: Optional[bool] = None) -> None:
        self.store = store
        self.strict_min_score = (
            strict_min_score if strict_min_score is not None else get_settings().strict_min_score
        )

    @property
    def criteria(self) -> Criteria:
        return self.store.get_value()

    @property
    def selected_dim(self) -> str:
        return self.criteria.selected_dim

    @property
    def min_score_text(self) -> str:
        return self.criteria.min_score_text

    def apply_dimension_change(self, new_value: str | None) -> Criteria | None:
        """Replace the selected id; an empty selection clears it.

        Returns the submitted Criteria, or None when read-only.
        """
        if self.store.is_read_only:
            logger.debug("Ignoring dimension change in read-only mode")
            return None
        return self._submit("dim", new_value or None)

    def apply_min_score_change(self, raw_input: str) -> Criteria | None:
        """Set minScore from input text; empty text clears it.

        Returns the submitted Criteria, or None when read-only.

        Raises:
            InvalidMinScoreError: In strict mode, when the text is not a finite number.
        """
        if self.store.is_read_only:
            logger.debug("Ignoring minScore change in read-only mode")
            return None
        if not raw_input:
            return self._submit("minScore", None)
        if self.strict_min_score:
            value = parse_min_score_strict(raw_input)
        else:
            value = coerce_min_score(raw_input)
            if math.isnan(value):
                logger.warning("Non-numeric minScore input %r stored as NaN", raw_input)
        return self._submit("minScore", value)

    def _submit(self, name: str, value: Any) -> Criteria:
        new_value = self.store.get_value().with_field(name, value)
        self.store.set_value(lambda _current: CriteriaUpdate(new_value=new_value))
        return new_value
