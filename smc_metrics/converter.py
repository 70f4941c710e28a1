"""Converter framework: route a record to every converter registered for its kind.

Records carry their own kind tag (`record_kind`), taken from a closed enum
defined next to the record models. Converters declare which kinds they
accept; CombinedConverter does the routing.
"""

from __future__ import annotations

import logging
from typing import Any, Hashable, List, Protocol, runtime_checkable

from .registry import MetricRegistry

logger = logging.getLogger(__name__)


@runtime_checkable
class Convertible(Protocol):
    record_kind: Hashable


class Converter(Protocol):
    """Maps one record into zero or more registry writes.

    `convert` raises ConversionError when the record cannot be mapped.
    Converting equal input twice must leave the registry as one call would.
    """

    name: str

    def match(self, kind: Hashable) -> bool: ...

    def convert(self, registry: MetricRegistry, value: Any) -> None: ...


class CombinedConverter:
    """Dispatches a record to every matching converter, in registration order."""

    name = "combined"

    def __init__(self) -> None:
        self._converters: List[Converter] = []

    def add(self, *converters: Converter) -> None:
        self._converters.extend(converters)

    def match(self, kind: Hashable) -> bool:
        return any(c.match(kind) for c in self._converters)

    def matching(self, kind: Hashable) -> List[Converter]:
        return [c for c in self._converters if c.match(kind)]

    def convert(self, registry: MetricRegistry, value: Convertible) -> None:
        """Run every matching converter; the first exception stops the rest."""
        kind = value.record_kind
        converters = self.matching(kind)
        if not converters:
            logger.debug("No converters match kind=%s", kind)
            return

        for converter in converters:
            converter.convert(registry, value)
