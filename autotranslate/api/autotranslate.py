"""
Auto-translate API - Providers, languages and on-demand translation

Endpoints for:
- Listing registered translation providers
- Listing languages supported by the active provider
- Translating a stored message into one explicit language
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from autotranslate.api.deps import get_autotranslate_service, require_active_orchestrator
from autotranslate.services.autotranslate_service import AutoTranslateService
from autotranslate.services.translation.entities import Message
from autotranslate.schemas.translation import (
    AttachmentResponse,
    LanguageResponse,
    LanguagesListResponse,
    MessageResponse,
    ProviderResponse,
    ProvidersListResponse,
    TranslateMessageRequest,
    TranslateMessageResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/autotranslate", tags=["autotranslate"])


def format_message(message: Message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        room_id=message.room_id,
        sender_id=message.sender_id,
        text=message.text,
        mentions=[m.username for m in message.mentions],
        channels=[c.name for c in message.channels],
        attachments=[
            AttachmentResponse(
                description=a.description,
                text=a.text,
                translations=dict(a.translations),
            )
            for a in message.attachments
        ],
        translations=dict(message.translations),
        translation_provider=message.translation_provider,
    )


@router.get("/providers", response_model=ProvidersListResponse)
async def list_providers(
    service: AutoTranslateService = Depends(get_autotranslate_service)
):
    """List registered providers and which one is active."""
    active_name = service.registry.active_provider_name

    providers = []
    for orchestrator in service.orchestrators:
        metadata = orchestrator.metadata
        providers.append(ProviderResponse(
            name=metadata.name,
            display_name=metadata.display_name or metadata.name,
            active=metadata.name == active_name,
        ))

    return ProvidersListResponse(providers=providers, active_provider=active_name)


@router.get("/languages", response_model=LanguagesListResponse)
async def list_languages(
    target: str,
    service: AutoTranslateService = Depends(get_autotranslate_service)
):
    """Languages the active provider can translate into ``target``."""
    orchestrator = require_active_orchestrator(service)
    languages = await orchestrator.get_supported_languages(target)

    return LanguagesListResponse(
        target=target,
        languages=[LanguageResponse(language=lang.language, name=lang.name) for lang in languages]
    )


@router.post(
    "/messages/{message_id}/translate",
    response_model=TranslateMessageResponse,
    status_code=status.HTTP_202_ACCEPTED
)
async def translate_message(
    message_id: str,
    req: TranslateMessageRequest,
    service: AutoTranslateService = Depends(get_autotranslate_service)
):
    """Schedule translation of a stored message into one language."""
    message = await service.messages.fetch_message(message_id)
    if message is None:
        raise HTTPException(status_code=404, detail="Message not found")

    orchestrator = require_active_orchestrator(service)
    if not (orchestrator.enabled and orchestrator.credentials_present):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Auto-translation is disabled or not configured"
        )

    tasks = orchestrator.dispatch_translations(message, [req.target_language])
    logger.info(
        f"[API] Scheduled {len(tasks)} translation task(s) for message {message_id} "
        f"into {req.target_language} via '{orchestrator.name}'"
    )

    return TranslateMessageResponse(
        status="scheduled" if tasks else "nothing_to_translate",
        provider=orchestrator.name,
        target_language=req.target_language,
        message=format_message(message),
    )
