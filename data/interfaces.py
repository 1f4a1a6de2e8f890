"""
Abstract reference-grid provider interface.

The engine needs exactly one ReferenceGrid per day, keyed by date.  How
those grids are fetched or stored (HYCOM downloads, OISST files, ...) is
the provider's business; swapping providers does not change downstream
code.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from models.grid import ReferenceGrid
from models.measurement import normalize_dates


def _as_date(day) -> date:
    return normalize_dates(pd.Series([day])).iloc[0]


class GridProvider(ABC):
    """Abstract source of daily reference grids.

    **Immutability contract:** callers must not mutate a returned grid's
    arrays in place; providers may cache and hand the same grid out twice.
    """

    @abstractmethod
    def available_dates(self) -> List[date]:
        """Return the sorted days for which a grid exists."""
        ...

    @abstractmethod
    def get_grid(self, day: date) -> Optional[ReferenceGrid]:
        """Return the grid for ``day``, or None if there is none."""
        ...

    def __contains__(self, day) -> bool:
        return _as_date(day) in set(self.available_dates())


class InMemoryGridProvider(GridProvider):
    """Serves grids from a mapping of day -> ReferenceGrid."""

    def __init__(self, grids: Mapping):
        self._grids: Dict[date, ReferenceGrid] = {
            _as_date(day): grid for day, grid in grids.items()
        }

    def available_dates(self) -> List[date]:
        return sorted(self._grids)

    def get_grid(self, day: date) -> Optional[ReferenceGrid]:
        return self._grids.get(_as_date(day))


class CallableGridProvider(GridProvider):
    """Builds grids lazily with a factory function.

    Args:
        days: Days for which the factory can produce a grid.
        factory: ``factory(day) -> ReferenceGrid``.
    """

    def __init__(self, days: Iterable, factory: Callable[[date], ReferenceGrid]):
        self._days = sorted({_as_date(d) for d in days})
        self._factory = factory

    def available_dates(self) -> List[date]:
        return list(self._days)

    def get_grid(self, day: date) -> Optional[ReferenceGrid]:
        day = _as_date(day)
        if day not in self._days:
            return None
        return self._factory(day)


def as_provider(grids: Union[GridProvider, Mapping]) -> GridProvider:
    """Wrap a plain mapping as a provider; pass providers through."""
    if isinstance(grids, GridProvider):
        return grids
    return InMemoryGridProvider(grids)
