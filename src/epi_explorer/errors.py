from __future__ import annotations


class ExplorerError(Exception):
    """Base class for errors raised by the explorer engine."""


class ConfigurationError(ExplorerError, ValueError):
    """Unknown or unsupported frequency mode, or an invalid engine setting."""


class InvalidValueError(ExplorerError, ValueError):
    """A magnitude that can never come from a count, e.g. a negative value."""


class SeriesValidationError(ExplorerError, ValueError):
    """Input rows that cannot form a date-ordered series."""
