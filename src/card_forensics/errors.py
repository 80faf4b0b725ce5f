"""Exception types raised by the forensics engine and its collaborators."""

__all__ = [
    'CardForensicsError',
    'InvalidInputError',
    'ImageDecodeError',
    'ReferenceFetchError',
]


class CardForensicsError(Exception):
    """Base class for all errors raised by card_forensics."""


class InvalidInputError(CardForensicsError, ValueError):
    """Buffer dimensions, buffer length or call arguments are not usable."""


class ImageDecodeError(CardForensicsError, ValueError):
    """The image codec could not decode the supplied data."""


class ReferenceFetchError(CardForensicsError, RuntimeError):
    """A reference provider failed to return data for a certificate."""
