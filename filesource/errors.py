"""Error taxonomy for the connector, its tasks and the worker."""

from __future__ import annotations


class ConnectorError(Exception):
    """Base class for every fatal connector/task failure."""


class ConfigurationError(ConnectorError):
    """An option value is missing its required type or is otherwise invalid."""


class StoreLookupError(ConnectorError):
    """The position store is unreachable or holds a malformed entry."""


class SourceReadError(ConnectorError):
    """The tailed file could not be read."""


class TaskStateError(ConnectorError):
    """A lifecycle method was called in a status that does not allow it."""


class DeliveryError(ConnectorError):
    """A sink failed to deliver or acknowledge a batch."""
