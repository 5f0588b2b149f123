# ==============================================================================
# Broadcast Values
# ==============================================================================
"""
Read-only values shared with every worker.

A Broadcast is built once by the job and handed to every task. Thread
workers share the same read-only mapping; process workers receive a pickled
copy of it.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class Broadcast(Generic[K, V]):
    """Read-only mapping distributed to every worker."""

    def __init__(self, value: Mapping[K, V]):
        self._value: Mapping[K, V] = MappingProxyType(dict(value))

    @property
    def value(self) -> Mapping[K, V]:
        return self._value

    def __len__(self) -> int:
        return len(self._value)

    def __reduce__(self):
        # MappingProxyType does not pickle; ship a plain dict and re-wrap
        return (Broadcast, (dict(self._value),))
