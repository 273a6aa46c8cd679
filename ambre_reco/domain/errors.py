"""Domain errors raised by the reconciliation engine."""
from __future__ import annotations


class ReconciliationError(Exception):
    """Base class for errors that abort a reconciliation cycle."""


class InvalidInputError(ReconciliationError, ValueError):
    """A snapshot or ledger sequence violates the key contract.

    Raised for null, blank or duplicate keys and for mappings whose key does
    not match the record stored under it.
    """

    def __init__(self, message: str, key: object = None) -> None:
        super().__init__(message)
        self.key = key
