"""Provider construction helpers."""

from loco_assistant.config import Settings, provider_credentials
from loco_assistant.providers.base import PROVIDER_NAMES, ModelProvider
from loco_assistant.providers.openai_compat import OpenAICompatProvider
from loco_assistant.providers.router import ProviderRouter


def resolve_primary_provider_name(settings: Settings) -> str:
    value = settings.primary_provider.strip().lower()
    if value in PROVIDER_NAMES:
        return value
    return "gemini"


def build_provider(settings: Settings, name: str) -> ModelProvider:
    base_url, api_key, model = provider_credentials(settings, name)
    return OpenAICompatProvider(
        name,
        base_url=base_url,
        api_key=api_key,
        model=model,
        timeout_seconds=settings.provider_timeout_seconds,
    )


def build_router(settings: Settings) -> ProviderRouter:
    """Router over every provider.

    Under ``auto`` the primary is tried first, then any other provider that
    has an API key configured.
    """
    primary = resolve_primary_provider_name(settings)
    fallbacks = [
        name
        for name in PROVIDER_NAMES
        if name != primary and provider_credentials(settings, name)[1].strip()
    ]
    order = [primary, *fallbacks]
    providers = {name: build_provider(settings, name) for name in PROVIDER_NAMES}
    return ProviderRouter(providers, order)
