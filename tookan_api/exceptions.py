import requests


class TookanSyncError(Exception):
    """Base class for order sync failures."""


class ConfigurationError(TookanSyncError):
    """Required settings such as the API key are missing."""


class TransientStatusError(requests.RequestException):
    """Upstream answered with a status worth retrying (429 or 5xx)."""


class MalformedResponseError(ValueError):
    """Upstream body could not be decoded into the expected shape."""
