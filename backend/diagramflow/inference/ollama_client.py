import logging
from typing import Optional

import requests

from diagramflow.config import LLM_TIMEOUT, OLLAMA_ENDPOINT, OLLAMA_MODEL
from diagramflow.errors import TransportError
from diagramflow.inference.base import LLMClient

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"


class OllamaClient(LLMClient):
    provider = "Ollama"

    def __init__(
        self,
        endpoint: str = OLLAMA_ENDPOINT,
        model: str = OLLAMA_MODEL,
        timeout: float = LLM_TIMEOUT,
    ):
        self.endpoint = endpoint
        self.model = model
        self.timeout = timeout

    @property
    def is_chat(self) -> bool:
        return CHAT_PATH in self.endpoint

    def build_payload(self, prompt: str) -> dict:
        if self.is_chat:
            return {
                "model": self.model,
                "messages": [
                    {
                        "role": "user",
                        "content": prompt,
                    }
                ],
                "stream": False,
            }

        return {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
        }

    def generate(self, prompt: str, image: Optional[str] = None) -> str:
        if image:
            logger.info("[Ollama] Image attachments are not forwarded to the local endpoint")

        logger.info("[Ollama] POST %s (model=%s)", self.endpoint, self.model)
        try:
            response = requests.post(
                self.endpoint,
                json=self.build_payload(prompt),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(self.provider, None, str(e)) from e

        if not response.ok:
            raise TransportError(self.provider, response.status_code, response.reason or "")

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(
                self.provider,
                response.status_code,
                "invalid JSON body",
                detail=response.text,
            ) from e

        if self.is_chat:
            return (data.get("message") or {}).get("content") or ""
        return data.get("response") or ""
