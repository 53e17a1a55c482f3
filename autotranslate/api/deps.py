from fastapi import Request, HTTPException, status
import logging

from autotranslate.services.autotranslate_service import AutoTranslateService
from autotranslate.services.translation.orchestrator import AutoTranslate

logger = logging.getLogger(__name__)


def get_autotranslate_service(request: Request) -> AutoTranslateService:
    """
    Dependency returning the service built by the application lifespan.
    """
    service = getattr(request.app.state, "autotranslate", None)
    if service is None:
        logger.warning("[API] Auto-translate service requested before startup")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Auto-translate service is not running"
        )
    return service


def require_active_orchestrator(service: AutoTranslateService) -> AutoTranslate:
    orchestrator = service.get_active()
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No active translation provider"
        )
    return orchestrator
