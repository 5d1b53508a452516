from typing import Optional


class TrackingError(Exception):
    """Base exception for all tracking errors."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(self.detail)


class ConfigError(TrackingError):
    """Raised when a plugin config file cannot be read or holds a mistyped value."""

    def __init__(self, detail: str = "Invalid configuration", key: Optional[str] = None):
        self.key = key
        super().__init__(detail)


class DeliveryError(TrackingError):
    """
    Raised when an analytics endpoint rejects or fails to receive an event.

    Never escapes the fire-and-forget boundary: the sender logs it and drops
    the event.
    """

    def __init__(
        self,
        detail: str = "Analytics delivery failed",
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
    ):
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(detail)

    def __str__(self):
        return f"DeliveryError(status_code={self.status_code}, endpoint='{self.endpoint}', detail='{self.detail}')"
