"""Marketplace tunables read from the ``[custom]`` table of domain.toml."""

from datetime import timedelta

from protean.utils.globals import current_domain

DEFAULTS = {
    "CART_TTL_MINUTES": 15,
    "DEFAULT_CURRENCY": "USD",
    "DEFAULT_PAYMENT_METHOD": "cash",
}


def setting(name: str):
    custom = current_domain.config.get("custom") or {}
    return custom.get(name, DEFAULTS[name])


def cart_ttl() -> timedelta:
    return timedelta(minutes=int(setting("CART_TTL_MINUTES")))


def default_currency() -> str:
    return str(setting("DEFAULT_CURRENCY"))


def default_payment_method() -> str:
    return str(setting("DEFAULT_PAYMENT_METHOD"))
