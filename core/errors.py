# core/errors.py

from fastapi import HTTPException


class ContractViolationError(TypeError):
    """
    Raised when calling code breaks the engine's input contract
    (non-sequence data, missing candidate role list, None record).

    Never raised for access decisions: an unknown role, resource or
    filter type is answered with deny / exclude, not an exception.
    """


class PermissionConfigError(ValueError):
    """Raised when a permission matrix or feature map cannot be loaded."""


def contract_violation(error: ContractViolationError) -> HTTPException:
    """
    Convert a contract violation into a 400 for HTTP callers.
    Returns HTTPException (doesn't raise) so caller can customize or re-raise.
    """
    from core.logging_config import logger

    logger.warning(f"Contract violation: {error}")
    return HTTPException(status_code=400, detail=f"Invalid request: {error}")
