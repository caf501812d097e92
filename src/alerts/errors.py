class AlertError(Exception):
    """Base exception for notification, sound, and background music output."""


class AlertConfigurationError(AlertError):
    """Raised when alert output configuration is invalid."""
