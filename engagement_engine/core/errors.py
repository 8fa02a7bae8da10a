"""
Error kinds surfaced by the engine.

Routers translate these into HTTP responses; the batch runner counts them
per channel and keeps going.
"""


class EngineError(Exception):
    """Base class for every error the engine raises on purpose."""


class ValidationError(EngineError):
    """Input is not sufficient to run the requested operation (e.g. too few posts)."""


class NotFoundError(EngineError):
    """Unknown channel or recommendation id."""


class StorageError(EngineError):
    """The storage gateway failed to read or write."""
