"""
Base domain exceptions.
"""


class FrappeurException(Exception):
    """Base exception for all Frappeur domain errors."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class EntityNotFoundError(FrappeurException):
    """Raised when an entity is not found."""

    def __init__(self, entity_type: str, entity_id: str):
        message = f"{entity_type} with ID {entity_id} not found"
        super().__init__(message, code="ENTITY_NOT_FOUND")
        self.entity_id = entity_id


class OperationNotFoundError(EntityNotFoundError):
    """Raised when a mint operation ID is unknown."""

    def __init__(self, operation_id: str):
        super().__init__("Mint operation", operation_id)


class CollectionNotFoundError(EntityNotFoundError):
    """Raised when a configured collection does not exist."""

    def __init__(self, collection_id: str):
        super().__init__("Collection", collection_id)


class WebhookNotFoundError(EntityNotFoundError):
    """Raised when a webhook registration does not exist."""

    def __init__(self, webhook_id: str):
        super().__init__("Webhook", webhook_id)


class ValidationError(FrappeurException):
    """Raised when request or entity validation fails."""

    def __init__(self, field: str, reason: str):
        message = f"Validation failed for {field}: {reason}"
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field
        self.reason = reason


class MintNotAllowedError(FrappeurException):
    """Raised when a collection refuses new mints."""

    def __init__(self, collection_id: str, reason: str):
        super().__init__(
            f"Minting not allowed in collection {collection_id}: {reason}",
            code="MINT_NOT_ALLOWED",
        )
        self.collection_id = collection_id
        self.reason = reason
