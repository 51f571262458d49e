"""Custom exceptions for tipjar."""


class TipJarError(Exception):
    """Base exception for tipjar."""


class ConfigError(TipJarError):
    """Raised when configuration is missing or invalid."""


class ModelUnavailable(TipJarError):
    """Raised when the language model cannot be reached (transport, auth, timeout)."""


class MalformedModelOutput(TipJarError):
    """Raised when no structured value can be recovered from a model reply."""


class CrawlFailed(TipJarError):
    """Raised when fetching a web page fails."""


class StorageUnavailable(TipJarError):
    """Raised when the tip or folder store cannot be read or written."""


class ValidationError(TipJarError):
    """Raised when a request is rejected before any external call."""
