"""Application-level exception types for uwu."""


class UwuError(Exception):
    """Base exception for uwu."""


class ConfigError(UwuError):
    """Raised when the configuration file cannot be created, read or parsed."""

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path


class ProviderError(UwuError):
    """Raised when the configured provider cannot be used."""


class ApiKeyNotConfiguredError(ProviderError):
    """Raised when a provider that needs an API key has none."""


class UnknownProviderError(ProviderError):
    """Raised when config.json names a provider type uwu does not know."""

    def __init__(self, provider_type: str):
        super().__init__(f'Unknown provider type "{provider_type}" in config.json.')
        self.provider_type = provider_type


class LlamaServerError(UwuError):
    """Raised when the local llama.cpp server cannot be found, started or queried."""
