"""
Exception types shared by the verse selector, its collaborators and the
result channel.
"""


class VerseError(Exception):
    """Base class for every failure raised while producing a daily verse."""


class EmptyVolumeError(VerseError):
    """Raised when the volume chosen for a day has no verses loaded."""

    def __init__(self, volume):
        self.volume = volume
        name = getattr(volume, "display_name", volume)
        super().__init__(f"No verses available for volume: {name}")


class CollaboratorUnavailableError(VerseError):
    """Raised when the verse-list store or the scripture text API cannot deliver."""


class InvalidReferenceError(VerseError, ValueError):
    """Raised for a reference string that is not "<Book> <Chapter>:<Verse>"."""


class ConfigError(VerseError):
    """Raised for configuration values that cannot be used at startup."""
