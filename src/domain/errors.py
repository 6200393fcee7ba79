from dataclasses import dataclass

NOT_FOUND = "not_found"
ACCESS_DENIED = "access_denied"
CONFLICT = "conflict"


@dataclass(frozen=True)
class OperationError:
    """Business-level failure reported by a component operation."""

    code: str
    message: str
    field: str | None = None


def not_found(what: str) -> OperationError:
    return OperationError(code=NOT_FOUND, message=f"{what} not found")


def access_denied(message: str = "Access denied") -> OperationError:
    return OperationError(code=ACCESS_DENIED, message=message)
