"""Exceptions raised by the taxonomy fetch and criteria edit paths."""

from __future__ import annotations


class TaxonomyFetchError(Exception):
    """Raised when a remote taxonomy request fails.

    Caught by the taxonomy cache, which retries and then reports the failure
    on the FetchResult. Callers of the cache never see it raised.
    """

    def __init__(
        self,
        resource: str,
        project_id: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.resource = resource
        self.project_id = project_id
        self.status_code = status_code
        super().__init__(f"{resource} fetch failed for project {project_id}: {message}")


class InvalidMinScoreError(ValueError):
    """Raised in strict mode when a minimum score input is not a finite number.

    Subclasses ValueError so API handlers can treat it like any other
    validation failure.
    """

    def __init__(self, raw_input: str) -> None:
        self.raw_input = raw_input
        super().__init__(f"minScore must be a finite number, got {raw_input!r}")
