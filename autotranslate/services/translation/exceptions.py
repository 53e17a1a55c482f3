"""
Auto-Translate Exceptions

Custom exceptions for tokenization and provider registry errors.
"""


class AutoTranslateError(Exception):
    """Base exception for auto-translation errors"""
    pass


class MalformedInputError(AutoTranslateError):
    """Raised at tokenize time when required configuration (e.g. link schemes) is missing"""
    pass


class RegistryNotInitializedError(AutoTranslateError):
    """Raised when the provider registry is used before init_registry()"""
    pass


class ProviderImportError(AutoTranslateError):
    """Raised when a configured provider import path cannot be resolved"""
    pass
