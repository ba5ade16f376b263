# routers/health.py

from fastapi import APIRouter, Depends

from core.config import settings
from core.evaluator import PermissionEvaluator
from dependencies.access import get_permission_evaluator

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/app
# Simple API health check for uptime monitors
# -----------------------------------------------------
@router.get("/app", summary="App health check")
async def health_app():
    """
    Lightweight health check for uptime monitors.
    """
    return {
        "service": settings.PROJECT_NAME,
        "status": "ok",
    }


# -----------------------------------------------------
# GET /health/matrix
# Which permission configuration is loaded
# -----------------------------------------------------
@router.get("/matrix", summary="Permission matrix summary")
def health_matrix(evaluator: PermissionEvaluator = Depends(get_permission_evaluator)):
    """
    Reports the loaded matrix size per role and the feature keys.
    No grants are listed.
    """
    matrix = evaluator.matrix
    return {
        "status": "ok",
        "source": settings.PERMISSION_MATRIX_FILE or "built-in",
        "entries": len(matrix),
        "roles": {role.value: len(matrix.for_role(role)) for role in sorted(matrix.roles)},
        "features": sorted(evaluator.features),
    }
