from typing import Dict, List, Optional
from pydantic import BaseModel


class ProviderResponse(BaseModel):
    name: str
    display_name: str
    active: bool = False


class ProvidersListResponse(BaseModel):
    providers: List[ProviderResponse]
    active_provider: Optional[str] = None


class LanguageResponse(BaseModel):
    language: str
    name: str


class LanguagesListResponse(BaseModel):
    target: str
    languages: List[LanguageResponse]


class TranslateMessageRequest(BaseModel):
    target_language: str


class AttachmentResponse(BaseModel):
    description: Optional[str] = None
    text: Optional[str] = None
    translations: Dict[str, str] = {}


class MessageResponse(BaseModel):
    id: str
    room_id: Optional[str] = None
    sender_id: Optional[str] = None
    text: str
    mentions: List[str] = []
    channels: List[str] = []
    attachments: List[AttachmentResponse] = []
    translations: Dict[str, str] = {}
    translation_provider: Optional[str] = None


class TranslateMessageResponse(BaseModel):
    status: str  # "scheduled" or "nothing_to_translate"
    provider: str
    target_language: str
    message: MessageResponse
