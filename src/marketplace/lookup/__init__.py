"""Lookup adapter factory.

Provides get_lookups() / set_lookups() to swap implementations:
- in-memory fakes for development and testing
- database-backed adapters wired by the hosting application
"""

from dataclasses import dataclass, field

from marketplace.lookup.fake_adapter import (
    FakeProductLookup,
    FakePromoLookup,
    FakeStoreLookup,
)
from marketplace.lookup.port import ProductLookup, PromoLookup, StoreLookup


@dataclass
class Lookups:
    stores: StoreLookup = field(default_factory=FakeStoreLookup)
    products: ProductLookup = field(default_factory=FakeProductLookup)
    promos: PromoLookup = field(default_factory=FakePromoLookup)


_current_lookups: Lookups | None = None


def get_lookups() -> Lookups:
    """Return the active lookups. Defaults to the in-memory fakes."""
    global _current_lookups
    if _current_lookups is None:
        _current_lookups = Lookups()
    return _current_lookups


def set_lookups(lookups: Lookups) -> None:
    """Override the active lookups (useful for tests)."""
    global _current_lookups
    _current_lookups = lookups


def reset_lookups() -> None:
    """Reset to the default fakes."""
    global _current_lookups
    _current_lookups = None
