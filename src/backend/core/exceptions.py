"""
Error taxonomy shared by the store and the services.

The HTTP layer (see main.py) translates each kind into a response;
nothing in the core retries.
"""


class OrnotError(Exception):
    """Base exception for Ornot operations."""

    pass


class StoreError(OrnotError):
    """Base exception for key-value store failures."""

    pass


class StoreUnavailable(StoreError):
    """The backing store could not be reached or rejected the call."""

    pass


class StoreTimeout(StoreError):
    """A store call exceeded the configured timeout."""

    pass


class CorruptData(StoreError):
    """A stored payload could not be deserialized."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"corrupt record at {key}: {reason}")
        self.key = key
        self.reason = reason


class NotFound(OrnotError):
    """A primary record does not exist."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id


class Unauthorized(OrnotError):
    """Missing, malformed or mismatching credentials."""

    pass


class ValidationError(OrnotError):
    """A request payload is malformed."""

    pass
