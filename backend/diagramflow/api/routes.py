from typing import Optional

from fastapi import APIRouter, Depends, Response

from diagramflow.api.serializers import serialize
from diagramflow.compiler.layout import apply_layout
from diagramflow.config import SETTINGS_PATH
from diagramflow.errors import DiagramflowError, MalformedGraphError
from diagramflow.pipeline.generator import DiagramSession
from diagramflow.samples import SAMPLE_PROMPTS
from diagramflow.schemas import (
    DirectionRequest,
    GenerateRequest,
    LayoutRequest,
    SettingsUpdate,
    SpeedRequest,
)
from diagramflow.settings_store import JsonFileSettingsStore


router = APIRouter()

_session: Optional[DiagramSession] = None


def get_session() -> DiagramSession:
    global _session
    if _session is None:
        _session = DiagramSession(store=JsonFileSettingsStore(SETTINGS_PATH))
    return _session


def _diagram_payload(session: DiagramSession) -> dict:
    animation = session.animation
    return {
        "graph": serialize(session.graph),
        "nodes": serialize(animation.nodes) if animation else [],
        "edges": serialize(animation.edges) if animation else [],
        "animation": serialize(animation.snapshot()) if animation else None,
    }


def _error_payload(error: DiagramflowError) -> dict:
    payload = {
        "status": "error",
        "error_type": error.error_type,
        "message": error.user_message,
        "detail": str(error),
    }
    if isinstance(error, MalformedGraphError):
        payload["raw_response"] = error.raw_text
    return payload


# ============================================================
# GENERATION
# ============================================================

@router.post("/generate")
def generate_diagram(request: GenerateRequest, session: DiagramSession = Depends(get_session)):
    try:
        result = session.submit(request.description, image=request.image)
    except DiagramflowError as e:
        return _error_payload(e)

    if result is None:
        return {
            "status": "busy",
            "message": "A diagram is already being generated",
        }

    return {
        "status": "success",
        "provider": result.provider,
        "raw_response": result.raw_response,
        **_diagram_payload(session),
    }


@router.get("/diagram")
def current_diagram(session: DiagramSession = Depends(get_session)):
    return {
        "status": "busy" if session.is_busy else "ready",
        "error": session.error,
        "error_type": session.error_type,
        "raw_response": session.raw_response,
        **_diagram_payload(session),
    }


@router.get("/diagram/svg")
def diagram_svg(session: DiagramSession = Depends(get_session)):
    svg = session.render_svg()
    if svg is None:
        return Response(status_code=404)
    return Response(svg, media_type="image/svg+xml")


@router.post("/layout")
def layout_graph(request: LayoutRequest):
    nodes, edges = apply_layout(request.graph, request.direction)
    return {
        "direction": request.direction.value,
        "nodes": serialize(nodes),
        "edges": serialize(edges),
    }


# ============================================================
# ANIMATION CONTROLS
# ============================================================

@router.get("/animation")
def animation_state(session: DiagramSession = Depends(get_session)):
    if session.animation is None:
        return {"status": "empty", "animation": None}
    return {"status": "success", "animation": serialize(session.animation.snapshot())}


@router.post("/animation/{action}")
def animation_action(action: str, session: DiagramSession = Depends(get_session)):
    actions = {
        "play": session.play,
        "pause": session.pause,
        "reset": session.reset,
    }
    if action not in actions:
        return {"status": "error", "message": f"Unknown animation action '{action}'"}

    actions[action]()
    return animation_state(session)


@router.put("/animation/speed")
def animation_speed(request: SpeedRequest, session: DiagramSession = Depends(get_session)):
    try:
        session.set_speed(request.speed)
    except DiagramflowError as e:
        return _error_payload(e)
    return animation_state(session)


@router.put("/animation/direction")
def animation_direction(request: DirectionRequest, session: DiagramSession = Depends(get_session)):
    session.set_direction(request.direction)
    return {"status": "success", **_diagram_payload(session)}


# ============================================================
# SETTINGS & SAMPLES
# ============================================================

@router.get("/settings")
def get_settings(session: DiagramSession = Depends(get_session)):
    return session.settings.masked()


@router.put("/settings")
def update_settings(request: SettingsUpdate, session: DiagramSession = Depends(get_session)):
    try:
        session.update_settings(**request.model_dump(exclude_none=True))
    except DiagramflowError as e:
        return _error_payload(e)
    session.clear_error()
    return session.settings.masked()


@router.get("/samples")
def list_samples():
    return SAMPLE_PROMPTS
