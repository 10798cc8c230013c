from typing import Optional

from diagramflow.config import GeneratorSettings
from diagramflow.errors import InputValidationError
from .base import LLMClient
from .chat_completions_client import ChatCompletionsClient
from .ollama_client import OllamaClient


def get_llm_client(settings: Optional[GeneratorSettings] = None) -> LLMClient:
    settings = settings or GeneratorSettings()

    if settings.is_cloud:
        if not settings.openai_api_key:
            raise InputValidationError("Please enter your OpenAI API key.")
        return ChatCompletionsClient(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            timeout=settings.request_timeout,
        )

    return OllamaClient(
        endpoint=settings.ollama_endpoint,
        model=settings.ollama_model,
        timeout=settings.request_timeout,
    )
