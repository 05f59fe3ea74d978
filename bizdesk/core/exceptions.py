class BizdeskException(Exception):
    """Base exception for bizdesk"""

    pass


class UnauthorizedException(BizdeskException):
    """Raised when JWT validation fails"""

    pass


class NotFoundException(BizdeskException):
    """Raised when resource not found"""

    pass


class ForbiddenException(BizdeskException):
    """Raised when the access control policy denies an operation"""

    pass


class ValidationException(BizdeskException):
    """Raised for business logic validation errors"""

    pass


class ConflictException(BizdeskException):
    """Raised when a resource with the same identity already exists"""

    pass


class OperationFailedException(BizdeskException):
    """
    Raised when the data store fails during a business operation.

    The message keeps the store's own error text behind a prefix naming
    the operation, e.g. "Failed to delete project: <store message>".
    """

    def __init__(self, operation: str, cause: Exception | str):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Failed to {operation}: {cause}")


class CascadeDeletionError(OperationFailedException):
    """Raised when a step of a cascade deletion fails"""

    def __init__(
        self,
        entity_type: str,
        entity_id: int,
        step: str,
        completed_steps: list[str],
        cause: Exception | str,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.step = step
        self.completed_steps = completed_steps
        super().__init__(f"delete {entity_type}", cause)
