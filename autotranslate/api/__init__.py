from fastapi import APIRouter
from autotranslate.api import autotranslate

router = APIRouter()

# Include auto-translate routes
router.include_router(autotranslate.router)
