# core/config_validator.py

from typing import List
from core.config import settings
from core.errors import PermissionConfigError
from core.logging_config import logger
from core.permissions import load_permission_config


def validate_required_config() -> List[str]:
    """
    Validate that the configured permission matrix can be loaded.
    Returns list of problems (empty when everything is fine).
    """
    problems = []

    try:
        matrix, _ = load_permission_config(settings.PERMISSION_MATRIX_FILE)
    except PermissionConfigError as e:
        problems.append(str(e))
        return problems

    if len(matrix) == 0:
        problems.append("Permission matrix has no entries")

    return problems


def validate_optional_config() -> List[str]:
    """
    Validate optional but recommended configuration.
    Returns list of warnings.
    """
    warnings = []

    if not settings.PERMISSION_MATRIX_FILE:
        warnings.append("PERMISSION_MATRIX_FILE not set, using built-in permission matrix")

    if settings.STRICT_FILTERING:
        warnings.append("STRICT_FILTERING enabled: unknown filter types return no records")

    return warnings


def validate_config_on_startup():
    """
    Validate configuration on application startup.
    Raises RuntimeError if the permission matrix is unusable.
    Logs warnings for optional config.
    """
    missing_required = validate_required_config()
    missing_optional = validate_optional_config()

    if missing_required:
        error_msg = f"Invalid permission configuration: {'; '.join(missing_required)}"
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    for warning in missing_optional:
        logger.warning(f"Configuration notice: {warning}")

    logger.info("Configuration validation passed")
