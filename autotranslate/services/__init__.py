"""Auto-translation services.

This package contains the engine and the adapters around it.

Service Categories:
- Translation: Tokenizer, detokenizer, provider registry, orchestrator
- Core: Repositories over the message and subscription tables
- Callbacks: Host hooks fired after a message is saved
- Settings: Watchable runtime settings with redis propagation

Wiring:
- autotranslate_service: Builds one orchestrator per registered provider
- rendering: Markdown renderer used by the markup pass
"""
