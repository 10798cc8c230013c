import os
from dataclasses import dataclass, replace
from typing import Optional

from dotenv import load_dotenv

from diagramflow.settings_store import SettingsStore

# Load .env from project root
load_dotenv()

API_MODE_LOCAL = "local"
API_MODE_CLOUD = "cloud"
API_MODES = (API_MODE_LOCAL, API_MODE_CLOUD)

API_KEY_SETTING = "openai-api-key"

DIAGRAMFLOW_API_MODE = os.getenv("DIAGRAMFLOW_API_MODE", API_MODE_LOCAL)
OLLAMA_ENDPOINT = os.getenv("OLLAMA_ENDPOINT", "http://localhost:11434/api/generate")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "300"))
SETTINGS_PATH = os.getenv("DIAGRAMFLOW_SETTINGS_PATH", ".diagramflow/settings.json")


@dataclass
class GeneratorSettings:
    api_mode: str = DIAGRAMFLOW_API_MODE
    ollama_endpoint: str = OLLAMA_ENDPOINT
    ollama_model: str = OLLAMA_MODEL
    openai_api_key: str = OPENAI_API_KEY
    openai_model: str = OPENAI_MODEL
    openai_base_url: str = OPENAI_BASE_URL
    request_timeout: float = LLM_TIMEOUT

    @property
    def is_cloud(self) -> bool:
        return self.api_mode == API_MODE_CLOUD

    def masked(self) -> dict:
        key = self.openai_api_key
        return {
            "api_mode": self.api_mode,
            "ollama_endpoint": self.ollama_endpoint,
            "ollama_model": self.ollama_model,
            "openai_api_key": f"{key[:3]}...{key[-4:]}" if len(key) > 8 else ("***" if key else ""),
            "openai_model": self.openai_model,
            "openai_base_url": self.openai_base_url,
        }


def load_settings(store: Optional[SettingsStore] = None, **overrides) -> GeneratorSettings:
    """
    Build settings from environment defaults, then apply the persisted
    API key (if any) and explicit overrides.
    """
    settings = GeneratorSettings()

    if store is not None:
        saved_key = store.get(API_KEY_SETTING)
        if saved_key:
            settings.openai_api_key = saved_key

    return replace(settings, **overrides) if overrides else settings


def save_api_key(
    settings: GeneratorSettings,
    api_key: str,
    store: Optional[SettingsStore] = None,
) -> GeneratorSettings:
    settings.openai_api_key = api_key
    if store is not None:
        store.set(API_KEY_SETTING, api_key)
    return settings
