"""Exception types raised by the strict (non-fallback) entry points."""

from __future__ import annotations


class RelationLensError(Exception):
    """Base class for analysis failures."""


class ExtractionError(RelationLensError):
    """The element tree could not be normalized."""


class ConstraintGenerationError(RelationLensError):
    """Relationships could not be converted into constraints."""


class LayoutValidationError(RelationLensError):
    """A candidate layout could not be checked against a constraint set."""
