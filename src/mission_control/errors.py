"""Error kinds raised by the board services.

Engine failures are not wrapped: the active store lists its driver exception
classes in ``Database.errors`` and the HTTP layer maps those directly.
"""

from __future__ import annotations


class MissionControlError(Exception):
    """Base class for errors raised by this package."""


class ValidationError(MissionControlError):
    """A required field is missing or blank. Raised before any storage call."""


class NotFoundError(MissionControlError):
    """The addressed record does not exist."""


class InitializationError(MissionControlError):
    """Schema setup failed. The process must not start serving."""
