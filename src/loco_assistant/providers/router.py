"""Provider router: explicit provider hints or primary-then-fallback."""

import logging
from collections.abc import Mapping

from loco_assistant.errors import ProviderError
from loco_assistant.providers.base import ModelProvider, ModelRequest, ModelResponse

logger = logging.getLogger(__name__)


class ProviderRouter:
    def __init__(self, providers: Mapping[str, ModelProvider], order: list[str]) -> None:
        if not order:
            raise ValueError("provider order must not be empty")
        self.providers = dict(providers)
        self.order = [name for name in order if name in self.providers]

    def _candidates(self, hint: str) -> list[str]:
        normalized = hint.strip().lower()
        if normalized in self.providers:
            return [normalized]
        return list(self.order)

    async def generate(self, request: ModelRequest) -> ModelResponse:
        errors: list[str] = []
        for name in self._candidates(request.provider):
            try:
                return await self.providers[name].generate(request)
            except Exception as exc:
                error = f"{name}={type(exc).__name__}: {exc}"
                logger.warning("Provider failed: %s", error)
                errors.append(error)
        raise ProviderError(f"all providers failed: {', '.join(errors) or 'none configured'}")

    async def health_check(self) -> bool:
        for name in self.order:
            if await self.providers[name].health_check():
                return True
        return False

    async def health(self) -> dict[str, bool]:
        return {name: await self.providers[name].health_check() for name in self.order}
