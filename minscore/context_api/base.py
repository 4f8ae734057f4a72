"""Abstract source interface for remote taxonomy collections."""

from __future__ import annotations

from abc import ABC, abstractmethod

from minscore.schemas.taxonomy import RawDimension, RawTrait


class TaxonomySource(ABC):
    """Pluggable source for the dimension and trait collections of a project.

    Implementations raise TaxonomyFetchError on failure; retry and caching
    belong to RemoteTaxonomyCache.
    """

    @property
    @abstractmethod
    def project_id(self) -> str:
        ...

    @abstractmethod
    async def get_dimensions(self) -> list[RawDimension]:
        """Fetch all dimensions, in the order the API returns them."""
        ...

    @abstractmethod
    async def get_traits(self) -> list[RawTrait]:
        """Fetch all discrete traits, in the order the API returns them."""
        ...
