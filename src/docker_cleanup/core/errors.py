"""
errors.py
- Exception types raised by the cleanup engine and its collaborators.
- Runtime failures surface to the outer loop; ConfigError is only raised at startup.
"""


class CleanupError(Exception):
    """Base class for failures of a cleanup cycle."""


class NoCandidatesError(CleanupError):
    def __init__(self, message="no images or caches to delete"):
        super().__init__(message)


class DiskProbeError(CleanupError):
    """The disk-space probe could not produce a reading."""


class ConfigError(ValueError):
    """An option could not be parsed."""
