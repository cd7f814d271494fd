"""Notification gateway registry.

Provides singleton access to the configured gateway. The ``log`` gateway is
the default; ``fake`` records messages in memory for tests. Select one with
the ``NOTIFICATION_GATEWAY`` custom setting or install one with
`set_gateway`.
"""

from storefront.config import setting

_gateway = None


def get_gateway():
    """Return the configured notification gateway (singleton)."""
    global _gateway
    if _gateway is None:
        kind = setting("NOTIFICATION_GATEWAY")
        if kind == "log":
            from storefront.notification.log_gateway import LogNotificationGateway

            _gateway = LogNotificationGateway()
        elif kind == "fake":
            from storefront.notification.fake_gateway import FakeNotificationGateway

            _gateway = FakeNotificationGateway()
        else:
            raise ValueError(f"Unknown notification gateway: {kind}")

    return _gateway


def set_gateway(gateway):
    global _gateway
    _gateway = gateway


def reset_gateway():
    """Drop the gateway singleton (useful for testing)."""
    global _gateway
    _gateway = None
