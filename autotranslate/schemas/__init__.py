from autotranslate.schemas.translation import (
    ProviderResponse,
    ProvidersListResponse,
    LanguageResponse,
    LanguagesListResponse,
    TranslateMessageRequest,
    AttachmentResponse,
    MessageResponse,
    TranslateMessageResponse,
)

__all__ = [
    "ProviderResponse",
    "ProvidersListResponse",
    "LanguageResponse",
    "LanguagesListResponse",
    "TranslateMessageRequest",
    "AttachmentResponse",
    "MessageResponse",
    "TranslateMessageResponse",
]
