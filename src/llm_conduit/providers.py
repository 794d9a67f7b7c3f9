from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum
from typing import Final, Optional, Self

from dotenv import load_dotenv

from llm_conduit._exceptions import MissingAPIKeyError

load_dotenv()


class Provider(StrEnum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    LOCAL = "local"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def is_cloud(self) -> bool:
        return self is not Provider.LOCAL


class LocalServer(StrEnum):
    OLLAMA = "Ollama"
    LM_STUDIO = "LM Studio"
    VLLM = "vLLM"

    @property
    def default_base_url(self) -> str:
        return _LOCAL_BASE_URLS[self]


OPENAI_BASE_URL: Final = "https://api.openai.com/v1"
ANTHROPIC_BASE_URL: Final = "https://api.anthropic.com/v1"
GOOGLE_BASE_URL: Final = "https://generativelanguage.googleapis.com/v1beta"

_DISPLAY_NAMES: Final[dict[Provider, str]] = {
    Provider.OPENAI: "OpenAI",
    Provider.ANTHROPIC: "Anthropic",
    Provider.GOOGLE: "Google",
    Provider.LOCAL: "Local",
}

_LOCAL_BASE_URLS: Final[dict[LocalServer, str]] = {
    LocalServer.OLLAMA: "http://localhost:11434/v1",
    LocalServer.LM_STUDIO: "http://localhost:1234/v1",
    LocalServer.VLLM: "http://localhost:8000/v1",
}

# First variable found wins
_ENV_VARS: Final[dict[Provider, tuple[str, ...]]] = {
    Provider.OPENAI: ("OPENAI_API_KEY",),
    Provider.ANTHROPIC: ("ANTHROPIC_API_KEY",),
    Provider.GOOGLE: ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
}


def get_api_key(provider: Provider) -> str:
    """Return the API key for *provider* from the environment or raise MissingAPIKeyError."""
    try:
        env_vars = _ENV_VARS[provider]
    except KeyError:
        raise MissingAPIKeyError(provider.display_name) from None

    for env_var in env_vars:
        key = os.environ.get(env_var)
        if key:
            return key
    raise MissingAPIKeyError(provider.display_name)


@dataclass(frozen=True, slots=True)
class ProviderTarget:
    """Where a request goes: which backend, which endpoint, which credentials."""

    provider: Provider
    base_url: str
    api_key: Optional[str] = None
    local_server: Optional[LocalServer] = None

    @classmethod
    def openai(cls, api_key: str | None = None, base_url: str = OPENAI_BASE_URL) -> Self:
        return cls(Provider.OPENAI, base_url, api_key)

    @classmethod
    def anthropic(cls, api_key: str | None = None, base_url: str = ANTHROPIC_BASE_URL) -> Self:
        return cls(Provider.ANTHROPIC, base_url, api_key)

    @classmethod
    def google(cls, api_key: str | None = None, base_url: str = GOOGLE_BASE_URL) -> Self:
        return cls(Provider.GOOGLE, base_url, api_key)

    @classmethod
    def local(
        cls,
        base_url: str | None = None,
        server: LocalServer = LocalServer.OLLAMA,
    ) -> Self:
        return cls(
            Provider.LOCAL,
            base_url or server.default_base_url,
            None,
            server,
        )

    @property
    def display_name(self) -> str:
        """Name used for usage records and error messages."""
        if self.local_server is not None:
            return self.local_server.value
        return self.provider.display_name

    def endpoint(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def require_api_key(self) -> str:
        """Resolve the key from the target first, then the environment."""
        if self.api_key:
            return self.api_key
        return get_api_key(self.provider)


__all__ = [
    "Provider",
    "LocalServer",
    "ProviderTarget",
    "get_api_key",
    "OPENAI_BASE_URL",
    "ANTHROPIC_BASE_URL",
    "GOOGLE_BASE_URL",
]
