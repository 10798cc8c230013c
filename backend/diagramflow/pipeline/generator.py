import logging
import threading
from dataclasses import dataclass
from typing import Optional

from diagramflow.animation import RevealAnimation, Scheduler, ThreadingScheduler, validate_speed
from diagramflow.compiler.layout import LayoutDirection
from diagramflow.config import API_MODES, GeneratorSettings, load_settings, save_api_key
from diagramflow.errors import DiagramflowError, InputValidationError, MalformedGraphError
from diagramflow.inference.base import LLMClient
from diagramflow.inference.config import get_llm_client
from diagramflow.inference.prompt import build_diagram_prompt
from diagramflow.ir.graph import GraphSpec
from diagramflow.llm.parser import parse_graph_response
from diagramflow.renderer.svg_renderer import render_svg
from diagramflow.settings_store import SettingsStore

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    graph: GraphSpec
    raw_response: str
    provider: str


class DiagramGenerator:
    """One LLM round trip: description -> prompt -> provider -> GraphSpec."""

    def __init__(
        self,
        settings: Optional[GeneratorSettings] = None,
        client: Optional[LLMClient] = None,
    ):
        self.settings = settings or GeneratorSettings()
        self._client = client

    def validate(self, description: str) -> None:
        if not description or not description.strip():
            raise InputValidationError("Please enter a description of your diagram.")
        if self.settings.api_mode not in API_MODES:
            raise InputValidationError(f"Unknown API mode: {self.settings.api_mode}")
        if self.settings.is_cloud and self._client is None and not self.settings.openai_api_key:
            raise InputValidationError("Please enter your OpenAI API key.")

    def generate(self, description: str, image: Optional[str] = None) -> GenerationResult:
        self.validate(description)
        client = self._client or get_llm_client(self.settings)

        logger.info("[Generator] Requesting diagram from %s", client.provider)
        raw = client.generate(build_diagram_prompt(description), image=image)
        logger.debug("[Generator] Raw response: %s", raw)

        graph = parse_graph_response(raw)
        logger.info(
            "[Generator] Parsed %d nodes, %d edges", len(graph.nodes), len(graph.edges)
        )
        return GenerationResult(graph=graph, raw_response=raw, provider=client.provider)


class DiagramSession:
    """
    Client-side state for one user: settings, the last good diagram, the
    raw reply, one current error message and the reveal animation.

    Only one request may be outstanding; submits made meanwhile are ignored.
    """

    def __init__(
        self,
        settings: Optional[GeneratorSettings] = None,
        store: Optional[SettingsStore] = None,
        scheduler: Optional[Scheduler] = None,
        client: Optional[LLMClient] = None,
    ):
        self.store = store
        self.settings = settings or load_settings(store)
        self.scheduler = scheduler or ThreadingScheduler()
        self._client = client

        self.graph: Optional[GraphSpec] = None
        self.raw_response: Optional[str] = None
        self.error: Optional[str] = None
        self.error_type: Optional[str] = None
        self.animation: Optional[RevealAnimation] = None

        self.direction = LayoutDirection.TOP_DOWN
        self.speed_multiplier = 1.0

        self._busy = threading.Lock()

    @property
    def is_busy(self) -> bool:
        return self._busy.locked()

    # ------------------------------------------------
    # settings
    # ------------------------------------------------

    def update_settings(self, **changes) -> GeneratorSettings:
        if "api_mode" in changes and changes["api_mode"] not in API_MODES:
            raise InputValidationError(f"Unknown API mode: {changes['api_mode']}")

        api_key = changes.pop("openai_api_key", None)
        if api_key is not None:
            save_api_key(self.settings, api_key, self.store)

        for name, value in changes.items():
            if value is not None and hasattr(self.settings, name):
                setattr(self.settings, name, value)

        return self.settings

    def clear_error(self) -> None:
        self.error = None
        self.error_type = None

    # ------------------------------------------------
    # generation
    # ------------------------------------------------

    def submit(self, description: str, image: Optional[str] = None) -> Optional[GenerationResult]:
        """
        Run one generation attempt. Returns None when another request is
        still outstanding. Errors are recorded on the session, then re-raised;
        the previously rendered diagram is kept.
        """
        if not self._busy.acquire(blocking=False):
            logger.warning("[Generator] Request already in progress, submit ignored")
            return None

        try:
            self.clear_error()
            generator = DiagramGenerator(self.settings, self._client)
            try:
                result = generator.generate(description, image=image)
            except MalformedGraphError as e:
                self.raw_response = e.raw_text
                self._record_error(e)
                raise
            except DiagramflowError as e:
                self._record_error(e)
                raise

            self.graph = result.graph
            self.raw_response = result.raw_response
            self._start_animation()
            return result
        finally:
            self._busy.release()

    def _record_error(self, error: DiagramflowError) -> None:
        logger.warning("[Generator] %s: %s", error.error_type, error)
        self.error = error.user_message
        self.error_type = error.error_type

    def _start_animation(self) -> None:
        if self.animation is None:
            self.animation = RevealAnimation(
                self.graph,
                scheduler=self.scheduler,
                direction=self.direction,
                speed_multiplier=self.speed_multiplier,
            )
        else:
            self.animation.load(self.graph)

    # ------------------------------------------------
    # animation controls
    # ------------------------------------------------

    def set_direction(self, direction: LayoutDirection) -> None:
        try:
            self.direction = LayoutDirection(direction)
        except ValueError as e:
            raise InputValidationError(f"Unknown layout direction: {direction}") from e
        if self.animation is not None:
            self.animation.set_direction(self.direction)

    def set_speed(self, speed: float) -> None:
        self.speed_multiplier = validate_speed(speed)
        if self.animation is not None:
            self.animation.set_speed(self.speed_multiplier)

    def play(self) -> None:
        if self.animation is not None:
            self.animation.resume()

    def pause(self) -> None:
        if self.animation is not None:
            self.animation.pause()

    def reset(self) -> None:
        if self.animation is not None:
            self.animation.reset()

    def render_svg(self) -> Optional[str]:
        if self.animation is None:
            return None
        return render_svg(self.animation.nodes, self.animation.edges)

    def close(self) -> None:
        if self.animation is not None:
            self.animation.stop()
