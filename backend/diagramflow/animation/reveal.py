import itertools
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from diagramflow.animation.scheduler import ScheduledCall, Scheduler, ThreadingScheduler
from diagramflow.compiler.layout import LayoutDirection, apply_layout
from diagramflow.errors import InputValidationError
from diagramflow.ir.graph import GraphSpec, LaidOutEdge, LaidOutNode

logger = logging.getLogger(__name__)

BASE_DURATION = 2.0  # seconds for a full reveal at 1x
MIN_SPEED = 0.5
MAX_SPEED = 3.0


class AnimationPhase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"


@dataclass
class AnimationState:
    progress: int
    total: int
    is_playing: bool
    speed_multiplier: float
    direction: LayoutDirection
    phase: AnimationPhase


def validate_speed(speed: float) -> float:
    speed = float(speed)
    if not MIN_SPEED <= speed <= MAX_SPEED:
        raise InputValidationError(
            f"Animation speed must be between {MIN_SPEED} and {MAX_SPEED}, got {speed}"
        )
    return speed


class RevealAnimation:
    """
    Staged reveal of a laid-out graph: one element per tick, every node
    (in sequence order) before any edge.

    Idle(progress=0) -> Running -> Complete. Only one timer is ever
    pending; rescheduling always cancels the previous one first.
    """

    def __init__(
        self,
        graph: GraphSpec,
        scheduler: Optional[Scheduler] = None,
        direction: LayoutDirection = LayoutDirection.TOP_DOWN,
        speed_multiplier: float = 1.0,
        autostart: bool = True,
    ):
        self.graph = graph
        self.scheduler = scheduler or ThreadingScheduler()
        self.direction = LayoutDirection(direction)
        self.speed_multiplier = validate_speed(speed_multiplier)

        self.nodes: List[LaidOutNode] = []
        self.edges: List[LaidOutEdge] = []
        self.progress = 0
        self.is_playing = False
        self.phase = AnimationPhase.IDLE

        self._pending: Optional[ScheduledCall] = None
        self._token = 0
        self._tokens = itertools.count(1)
        self._listeners: List[Callable[["RevealAnimation"], None]] = []
        # ThreadingScheduler fires on timer threads
        self._lock = threading.RLock()

        if autostart:
            self.reset()

    # ------------------------------------------------
    # state
    # ------------------------------------------------

    @property
    def total(self) -> int:
        return len(self.nodes) + len(self.edges)

    @property
    def tick_period(self) -> Optional[float]:
        if self.total == 0:
            return None
        return (BASE_DURATION / self.speed_multiplier) / self.total

    @property
    def is_complete(self) -> bool:
        return self.phase == AnimationPhase.COMPLETE

    def snapshot(self) -> AnimationState:
        return AnimationState(
            progress=self.progress,
            total=self.total,
            is_playing=self.is_playing,
            speed_multiplier=self.speed_multiplier,
            direction=self.direction,
            phase=self.phase,
        )

    def subscribe(self, listener: Callable[["RevealAnimation"], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ------------------------------------------------
    # timer
    # ------------------------------------------------

    def _cancel_pending(self) -> None:
        self._token = 0
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _schedule(self) -> None:
        self._cancel_pending()
        token = next(self._tokens)
        self._token = token
        self._pending = self.scheduler.call_later(
            self.tick_period,
            lambda: self._on_timer(token),
        )

    def _on_timer(self, token: int) -> None:
        with self._lock:
            # a callback that lost a race with cancel() must not tick
            if token != self._token:
                return
            self._pending = None
            self._token = 0
            if not self.is_playing or self.phase != AnimationPhase.RUNNING:
                return
            self.tick()
            if self.is_playing and self.phase == AnimationPhase.RUNNING:
                self._schedule()

    # ------------------------------------------------
    # transitions
    # ------------------------------------------------

    def tick(self) -> bool:
        """Reveal the next element. Returns False once everything is visible."""
        with self._lock:
            if self.progress >= self.total:
                self._complete()
                return False

            if self.progress < len(self.nodes):
                i = self.progress
                revealed = self.nodes[i].model_copy(update={"opacity": 1.0})
                self.nodes = self.nodes[:i] + [revealed] + self.nodes[i + 1:]
                logger.debug("[Animation] Node %s revealed", revealed.id)
            else:
                i = self.progress - len(self.nodes)
                revealed = self.edges[i].model_copy(update={"opacity": 1.0, "animated": True})
                self.edges = self.edges[:i] + [revealed] + self.edges[i + 1:]
                logger.debug("[Animation] Edge %s revealed", revealed.id)

            self.progress += 1
            if self.progress >= self.total:
                self._complete()
            self._notify()
            return True

    def _complete(self) -> None:
        self._cancel_pending()
        self.is_playing = False
        self.phase = AnimationPhase.COMPLETE

    def reset(self) -> None:
        """Recompute the layout and restart from progress 0."""
        with self._lock:
            self._cancel_pending()
            self.nodes, self.edges = apply_layout(self.graph, self.direction)
            self.progress = 0
            self.phase = AnimationPhase.IDLE

            logger.info(
                "[Animation] Reset: %d nodes, %d edges (%s, %.1fx)",
                len(self.nodes), len(self.edges), self.direction.value, self.speed_multiplier,
            )

            if self.total == 0:
                self._complete()
            else:
                self.is_playing = True
                self.phase = AnimationPhase.RUNNING
                self._schedule()
            self._notify()

    def load(self, graph: GraphSpec) -> None:
        with self._lock:
            self.graph = graph
            self.reset()

    def set_direction(self, direction: LayoutDirection) -> None:
        with self._lock:
            self.direction = LayoutDirection(direction)
            self.reset()

    def set_speed(self, speed: float) -> None:
        # the tick already in flight keeps its delay; the next one uses the new period
        with self._lock:
            self.speed_multiplier = validate_speed(speed)
            self._notify()

    def pause(self) -> None:
        with self._lock:
            if not self.is_playing:
                return
            self.is_playing = False
            self._cancel_pending()
            self._notify()

    def resume(self) -> None:
        with self._lock:
            if self.is_playing or self.phase == AnimationPhase.COMPLETE:
                return
            self.is_playing = True
            self.phase = AnimationPhase.RUNNING
            self._schedule()
            self._notify()

    def toggle(self) -> None:
        if self.is_playing:
            self.pause()
        else:
            self.resume()

    def stop(self) -> None:
        """Cancel any pending tick, e.g. when the diagram is discarded."""
        with self._lock:
            self._cancel_pending()
            self.is_playing = False
