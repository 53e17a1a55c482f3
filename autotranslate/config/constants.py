"""
Application-wide constants for the auto-translation engine.

Note: Environment-dependent settings (DB, Redis, provider selection) belong in
settings.py. This file is for values that do not change between environments.
"""

# ==============================================================================
# RUNTIME SETTING KEYS
# ==============================================================================

# Master switch for auto-translation
SETTING_ENABLED: str = "AUTOTRANSLATE_ENABLED"

# Name of the provider that receives the after-save hook
SETTING_SERVICE_PROVIDER: str = "AUTOTRANSLATE_SERVICE_PROVIDER"

# Comma separated URL schemes recognised by the link pass
SETTING_LINK_SCHEMES: str = "MARKDOWN_SUPPORT_SCHEMES_FOR_LINK"

# ==============================================================================
# TOKEN MARKERS
# ==============================================================================

# Semantic flag providers must treat as opaque
NOTRANSLATE_FLAG: str = "notranslate"

# Marker wrapper; the integer index is the only variable part
MARKER_TEMPLATE: str = "<i class=" + NOTRANSLATE_FLAG + ">{{{index}}}</i>"

# Placeholder format the markdown renderer uses for the spans it protects
RENDERER_PLACEHOLDER_TEMPLATE: str = "=!={key}=!="

# ==============================================================================
# CALLBACK HOOKS
# ==============================================================================

# Hook fired by the host after a message is durably saved
AFTER_SAVE_MESSAGE_HOOK: str = "afterSaveMessage"

# ==============================================================================
# REDIS
# ==============================================================================

# Pub/sub channel carrying runtime setting changes
SETTINGS_CHANNEL: str = "channel:settings"

