# Staged reveal animation
# Timer-driven state machine over a laid-out graph, decoupled from any renderer

from diagramflow.animation.scheduler import (
    AsyncioScheduler,
    ManualScheduler,
    ScheduledCall,
    Scheduler,
    ThreadingScheduler,
)
from diagramflow.animation.reveal import (
    AnimationPhase,
    AnimationState,
    RevealAnimation,
    validate_speed,
)
from diagramflow.animation.frames import export_frames

__all__ = [
    "AsyncioScheduler",
    "ManualScheduler",
    "ScheduledCall",
    "Scheduler",
    "ThreadingScheduler",
    "AnimationPhase",
    "AnimationState",
    "RevealAnimation",
    "validate_speed",
    "export_frames",
]
