import logging
from typing import List, Optional

import requests

from diagramflow.config import LLM_TIMEOUT, OPENAI_BASE_URL, OPENAI_MODEL
from diagramflow.errors import InputValidationError, TransportError
from diagramflow.inference.base import LLMClient
from diagramflow.inference.prompt import IMAGE_UNSUPPORTED_NOTE, SYSTEM_PROMPT

logger = logging.getLogger(__name__)

VISION_MODELS = ("gpt-4-vision", "gpt-4o")


class ChatCompletionsClient(LLMClient):
    provider = "OpenAI"

    def __init__(
        self,
        api_key: str,
        model: str = OPENAI_MODEL,
        base_url: str = OPENAI_BASE_URL,
        temperature: float = 0.7,
        timeout: float = LLM_TIMEOUT,
    ):
        if not api_key:
            raise InputValidationError("Please enter your OpenAI API key.")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.timeout = timeout

    @property
    def supports_images(self) -> bool:
        return self.model in VISION_MODELS

    def build_messages(self, prompt: str, image: Optional[str] = None) -> List[dict]:
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]

        if image and self.supports_images:
            messages.append({
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": image}},
                ],
            })
        elif image:
            messages.append({"role": "user", "content": f"{prompt}{IMAGE_UNSUPPORTED_NOTE}"})
        else:
            messages.append({"role": "user", "content": prompt})

        return messages

    def generate(self, prompt: str, image: Optional[str] = None) -> str:
        url = f"{self.base_url}/chat/completions"

        logger.info("[OpenAI] POST %s (model=%s, image=%s)", url, self.model, bool(image))
        try:
            response = requests.post(
                url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "model": self.model,
                    "messages": self.build_messages(prompt, image),
                    "temperature": self.temperature,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(self.provider, None, str(e)) from e

        if not response.ok:
            raise TransportError(
                self.provider,
                response.status_code,
                response.reason or "",
                detail=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(
                self.provider,
                response.status_code,
                "invalid JSON body",
                detail=response.text,
            ) from e

        choices = data.get("choices") or [{}]
        return (choices[0].get("message") or {}).get("content") or ""
