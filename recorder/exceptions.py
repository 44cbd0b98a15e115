"""Custom exceptions for the qlog recorder."""


class RecorderError(Exception):
    """Base exception for all recorder errors."""

    pass


class SessionSetupError(RecorderError):
    """Error while bringing a player session up."""

    pass


class ManifestRetrievalError(SessionSetupError):
    """Manifest could not be retrieved or was empty."""

    pass


class SessionStateError(RecorderError):
    """Operation not allowed in the current session state."""

    pass


class ExportError(RecorderError):
    """Error writing a trace or manifest artifact."""

    pass


class ConfigurationError(RecorderError):
    """Error in recorder configuration."""

    pass
