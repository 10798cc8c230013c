import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from diagramflow.errors import MalformedGraphError, PARSE_FAILURE_MESSAGE
from diagramflow.ir.graph import GraphSpec, has_coordinates

logger = logging.getLogger(__name__)

CODE_FENCE = "```"
JSON_TAG = "json"
REQUIRED_KEYS = ("nodes", "edges")

_JSON_OBJECT = re.compile(r"(\{[\s\S]*\})")


# ============================================================
# CLEANUP (LLM TRUST BOUNDARY)
# ============================================================

def clean_response(text: str) -> str:
    """
    Strip the formatting noise LLMs wrap around JSON.

    Order matters:
    1. trim whitespace
    2. drop a leading code fence (and its closing fence, keeping the body)
    3. drop a leading "json" language tag
    4. narrow to the first {...} span, greedy across lines
    """
    cleaned = (text or "").strip()

    if cleaned.startswith(CODE_FENCE):
        end = cleaned.find(CODE_FENCE, len(CODE_FENCE))
        if end != -1:
            cleaned = cleaned[len(CODE_FENCE):end].strip()
        else:
            cleaned = cleaned[len(CODE_FENCE):].strip()

    if cleaned.startswith(JSON_TAG):
        cleaned = cleaned[len(JSON_TAG):].strip()

    match = _JSON_OBJECT.search(cleaned)
    if match:
        cleaned = match.group(1)

    return cleaned


def fallback_position(index: int) -> Dict[str, int]:
    return {
        "x": 100 + (index % 3) * 200,
        "y": 100 + (index // 3) * 150,
    }


def assign_fallback_positions(nodes: List[Any]) -> List[Any]:
    """Give every node without a usable x/y position a slot on a 3-column grid."""
    placed = []
    for index, node in enumerate(nodes):
        if isinstance(node, dict) and not has_coordinates(node.get("position")):
            node = {**node, "position": fallback_position(index)}
        placed.append(node)
    return placed


# ============================================================
# GRAPH PARSER
# ============================================================

def parse_graph_response(text: str) -> GraphSpec:
    cleaned = clean_response(text)
    logger.debug("[Parser] Cleaned content: %s", cleaned)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedGraphError(
            f"Invalid JSON in model response: {e}",
            raw_text=text,
        ) from e

    if not isinstance(data, dict):
        raise MalformedGraphError(
            f"Expected a JSON object, got {type(data).__name__}",
            raw_text=text,
        )

    missing = [key for key in REQUIRED_KEYS if data.get(key) is None]
    if missing:
        raise MalformedGraphError(
            "JSON is missing the required "
            + " and ".join(f"'{key}'" for key in missing)
            + (" properties" if len(missing) > 1 else " property"),
            raw_text=text,
            missing_keys=missing,
        )

    if not isinstance(data["nodes"], list) or not isinstance(data["edges"], list):
        raise MalformedGraphError("'nodes' and 'edges' must be arrays", raw_text=text)

    try:
        return GraphSpec(
            nodes=assign_fallback_positions(data["nodes"]),
            edges=data["edges"],
        )
    except ValidationError as e:
        raise MalformedGraphError(
            f"Graph entries have an unexpected shape: {e.error_count()} error(s)",
            raw_text=text,
        ) from e


@dataclass
class InterpretedResponse:
    raw_text: str
    graph: Optional[GraphSpec] = None
    error: Optional[MalformedGraphError] = None

    @property
    def ok(self) -> bool:
        return self.graph is not None

    @property
    def message(self) -> Optional[str]:
        return PARSE_FAILURE_MESSAGE if self.error else None


def interpret_response(text: str) -> InterpretedResponse:
    """
    Never raises: the raw reply is returned alongside either the graph
    or the parse error.
    """
    try:
        graph = parse_graph_response(text)
    except MalformedGraphError as e:
        logger.warning("[Parser] %s", e)
        return InterpretedResponse(raw_text=text, error=e)

    return InterpretedResponse(raw_text=text, graph=graph)
