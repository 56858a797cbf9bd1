"""Provider configuration loader for Sustainify."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from ..adapters.cloud_vision_adapter import CloudVisionAdapter
from ..adapters.gemini_adapter import GeminiAdapter
from ..adapters.mock_adapter import MockAdapter
from ..adapters.openai_adapter import OpenAIAdapter

load_dotenv()

DEFAULT_PROVIDERS: dict[str, dict[str, Any]] = {
    "gemini": {
        "model": "gemini-1.5-flash",
        "api_key_env": "GEMINI_API_KEY",
        "description": "Google Gemini multimodal generateContent",
    },
    "openai": {
        "model": "gpt-4o-mini",
        "api_key_env": "OPENAI_API_KEY",
        "description": "OpenAI chat completions with image input",
    },
    "vision": {
        "model": "label-detection",
        "api_key_env": "GOOGLE_VISION_API_KEY",
        "description": "Google Cloud Vision label detection",
        "max_results": 10,
    },
}

ADAPTER_CLASSES = {
    "gemini": GeminiAdapter,
    "openai": OpenAIAdapter,
    "vision": CloudVisionAdapter,
}

DEFAULT_PROVIDER = "gemini"
DEFAULT_TIMEOUT_SECONDS = 20.0
DEFAULT_MAX_ATTEMPTS = 1


def use_mocks() -> bool:
    return os.environ.get("SUSTAINIFY_ENV", "real").lower() == "mock"


def identify_timeout() -> float:
    raw = os.environ.get("SUSTAINIFY_IDENTIFY_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_TIMEOUT_SECONDS


def max_attempts() -> int:
    raw = os.environ.get("SUSTAINIFY_MAX_ATTEMPTS", "").strip()
    try:
        return max(1, int(raw)) if raw else DEFAULT_MAX_ATTEMPTS
    except ValueError:
        return DEFAULT_MAX_ATTEMPTS


class ProviderConfig:
    """Configuration for a single vision provider."""

    def __init__(self, provider_id: str, config_dict: dict):
        self.id = provider_id
        self.model = config_dict.get("model", "")
        self.api_key_env = config_dict.get("api_key_env", "")
        self.description = config_dict.get("description", "")
        self.options = {
            k: v
            for k, v in config_dict.items()
            if k not in ("model", "api_key_env", "description")
        }

    def is_available(self, mock: bool = False) -> bool:
        """Check if this provider is usable (has an API key or is in mock mode)."""
        if mock:
            return True
        return bool(os.environ.get(self.api_key_env))

    def create_adapter(self, mock: bool = False):
        if mock:
            return MockAdapter(model=self.id)
        adapter_cls = ADAPTER_CLASSES.get(self.id)
        if adapter_cls is None:
            raise ValueError(f"Unknown provider: {self.id}")
        return adapter_cls(
            model=self.model,
            api_key_env=self.api_key_env,
            max_attempts=max_attempts(),
            **self.options,
        )


class ProviderConfigLoader:
    """Loads provider settings from config/providers.yaml over the built-in defaults."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        if config_path is None:
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / "config" / "providers.yaml"
        self.config_path = config_path
        self._config: dict[str, Any] | None = None
        self._providers: Dict[str, ProviderConfig] | None = None

    def _load_config(self) -> None:
        if self._config is not None:
            return
        if self.config_path.exists():
            with self.config_path.open("r", encoding="utf-8") as handle:
                self._config = yaml.safe_load(handle) or {}
        else:
            self._config = {}

        user_providers = self._config.get("providers", {})
        if not isinstance(user_providers, dict):
            user_providers = {}
        self._providers = {}
        for provider_id in set(DEFAULT_PROVIDERS) | set(user_providers):
            merged = dict(DEFAULT_PROVIDERS.get(provider_id, {}))
            override = user_providers.get(provider_id) or {}
            if isinstance(override, dict):
                merged.update({k: v for k, v in override.items() if v is not None})
            self._providers[provider_id] = ProviderConfig(provider_id, merged)

    @property
    def providers(self) -> Dict[str, ProviderConfig]:
        self._load_config()
        return self._providers or {}

    @property
    def default_provider(self) -> str:
        self._load_config()
        env_choice = os.environ.get("SUSTAINIFY_PROVIDER", "").strip()
        if env_choice:
            return env_choice
        return (self._config or {}).get("default_provider") or DEFAULT_PROVIDER

    def get_provider(self, provider_id: str) -> Optional[ProviderConfig]:
        return self.providers.get(provider_id)

    def list_providers(self, mock: bool = False) -> List[dict]:
        return [
            {
                "id": p.id,
                "model": p.model,
                "description": p.description,
                "available": p.is_available(mock),
            }
            for p in sorted(self.providers.values(), key=lambda p: p.id)
        ]

    def create_adapter(self, provider_id: Optional[str] = None, mock: Optional[bool] = None):
        """Create the adapter for ``provider_id`` (default provider when omitted)."""
        if mock is None:
            mock = use_mocks()
        provider_id = provider_id or self.default_provider
        config = self.get_provider(provider_id)
        if config is None:
            raise ValueError(f"Unknown provider: {provider_id}")
        return config.create_adapter(mock)


provider_config_loader = ProviderConfigLoader()
