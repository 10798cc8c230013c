from abc import ABC, abstractmethod
from typing import Optional


class LLMClient(ABC):
    provider: str

    @abstractmethod
    def generate(self, prompt: str, image: Optional[str] = None) -> str:
        """Return the model's raw text reply for a single diagram prompt.

        `image` is an optional data URI; clients that cannot forward
        images ignore it.
        """
        pass
