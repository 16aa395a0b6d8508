"""Exceptions raised by item store adapters."""


class LookupFailedError(Exception):
    """The item store could not be read."""


class MutationError(Exception):
    """The item store rejected a write."""


class StaleItemError(MutationError):
    """Conditional update matched no row: the item changed since it was read."""
