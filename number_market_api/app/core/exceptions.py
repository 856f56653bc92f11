"""
Error kinds raised by the service layer.

Services historically signalled a missing row with a bare
``ValueError``.  ``NotFoundError`` keeps that contract (it is a
``ValueError`` subclass) while letting the API layer tell a missing
row apart from bad input.
"""

from typing import Any


class NotFoundError(ValueError):
    """A referenced record does not exist."""

    def __init__(self, entity: str, object_id: Any) -> None:
        self.entity = entity
        self.object_id = object_id
        super().__init__(f"{entity} with id {object_id} not found")
