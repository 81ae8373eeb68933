"""Exceptions raised by the cleanup engine and its adapters."""


class CleanupError(Exception):
    """Base class for calendar cleanup failures."""


class ConfigurationError(CleanupError):
    """Configuration is invalid; raised before any calendar is touched."""


class ProviderAccessError(CleanupError):
    """Calendar enumeration or event listing failed."""


class DeletionError(CleanupError):
    """A calendar event could not be deleted."""


class FatalRunError(CleanupError):
    """Unexpected failure in the run sequence itself."""
