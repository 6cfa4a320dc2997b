"""Data access exceptions.

Lookups by id raise these instead of returning None so routers can map a
missing ledger row straight to a 404.
"""


class RepositoryError(Exception):
    """Base exception for ledger storage lookups."""


class NotFoundError(RepositoryError):
    """No row with the requested identifier."""

    def __init__(self, entity_type: str, identifier: str | int):
        self.entity_type = entity_type
        self.identifier = identifier
        super().__init__(f"{entity_type} {identifier} does not exist")
