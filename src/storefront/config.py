"""Access to storefront settings kept in the ``[custom]`` section of domain.toml."""

from protean.utils.globals import current_domain

DEFAULTS = {
    "CHECKOUT_DEADLINE_SECONDS": 30,
    "ORDER_NUMBER_PREFIX": "ARC",
    "NOTIFICATION_GATEWAY": "log",
}


def setting(key: str, default=None):
    """Return a custom setting of the active domain, falling back to defaults."""
    custom = current_domain.config.get("custom") or {}
    if default is None:
        default = DEFAULTS.get(key)
    return custom.get(key, default)
