"""
core/registry.py
----------------
Immutable name -> implementation tables for the four pluggable
capabilities. Filled once at start-up, then frozen for the lifetime of
the process.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping

from core.errors import ConfigurationError, DuplicateComponentError, UnknownComponentError


class CapabilityKind(str, Enum):
    NEWS_SOURCE = "news_source"
    MARKET_DATA = "market_data"
    STRATEGY = "strategy"
    BROKER = "broker"


class CapabilityRegistry:
    """Lookup table for news sources, market data, strategies and brokers."""

    def __init__(self) -> None:
        self._tables: Dict[CapabilityKind, Dict[str, Any]] = {
            kind: {} for kind in CapabilityKind
        }
        self._frozen = False

    @classmethod
    def build(
        cls,
        *,
        news_sources: Iterable[Any] = (),
        market_data: Iterable[Any] = (),
        strategies: Iterable[Any] = (),
        brokers: Iterable[Any] = (),
    ) -> "CapabilityRegistry":
        """Register each implementation under its self-reported ``name`` and freeze."""
        registry = cls()
        groups = (
            (CapabilityKind.NEWS_SOURCE, news_sources),
            (CapabilityKind.MARKET_DATA, market_data),
            (CapabilityKind.STRATEGY, strategies),
            (CapabilityKind.BROKER, brokers),
        )
        for kind, implementations in groups:
            for implementation in implementations:
                registry.register(kind, implementation.name, implementation)
        registry.freeze()
        return registry

    # ------------------------------------------------------------------ #
    def register(self, kind: CapabilityKind, name: str, implementation: Any) -> None:
        if self._frozen:
            raise ConfigurationError("registry is frozen; register providers at start-up")
        if not name:
            raise ConfigurationError(f"{kind.value} implementation has no name: {implementation!r}")
        table = self._tables[kind]
        if name in table:
            raise DuplicateComponentError(f"{kind.value} '{name}' is already registered")
        table[name] = implementation

    def resolve(self, kind: CapabilityKind, name: str) -> Any:
        try:
            return self._tables[kind][name]
        except KeyError:
            raise UnknownComponentError(f"{kind.value} '{name}' not found") from None

    def names(self, kind: CapabilityKind) -> List[str]:
        return sorted(self._tables[kind])

    def freeze(self) -> None:
        self._tables = {kind: MappingProxyType(table) for kind, table in self._tables.items()}
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def table(self, kind: CapabilityKind) -> Mapping[str, Any]:
        return MappingProxyType(self._tables[kind])
