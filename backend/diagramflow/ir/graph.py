from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


NODE_WIDTH = 180
NODE_HEIGHT = 60


def _as_text(value: Any) -> Any:
    # LLMs happily emit numeric ids ("id": 1); the diagram treats every id as text
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


class Position(BaseModel):
    x: float
    y: float


def has_coordinates(value: Any) -> bool:
    """True for a position carrying numeric x and y."""
    if isinstance(value, Position):
        return True
    if not isinstance(value, dict):
        return False
    return all(
        isinstance(value.get(axis), (int, float)) and not isinstance(value.get(axis), bool)
        for axis in ("x", "y")
    )


def _as_style(value: Any) -> Any:
    # CSS strings and other non-mappings are dropped rather than failing the graph
    return value if isinstance(value, dict) else {}


class NodeSpec(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    label: str = ""
    position: Optional[Position] = None
    style: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _default_label(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("label") and data.get("id") is not None:
            data = {**data, "label": str(data["id"])}
        return data

    @field_validator("id", "label", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("position", mode="before")
    @classmethod
    def _partial_position(cls, value: Any) -> Any:
        # {"x": 100} alone cannot be placed; treat it as absent
        if value is None or has_coordinates(value):
            return value
        return None

    @field_validator("style", mode="before")
    @classmethod
    def _empty_style(cls, value: Any) -> Any:
        return _as_style(value)


class EdgeSpec(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    source: str
    target: str
    label: Optional[str] = None
    style: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _default_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("id") in (None, ""):
            data = {**data, "id": f"e{data.get('source')}-{data.get('target')}"}
        return data

    @field_validator("id", "source", "target", "label", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("style", mode="before")
    @classmethod
    def _empty_style(cls, value: Any) -> Any:
        return _as_style(value)


class GraphSpec(BaseModel):
    """Node/edge structure interpreted from one LLM reply."""

    nodes: List[NodeSpec]
    edges: List[EdgeSpec]

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]


class LaidOutNode(NodeSpec):
    position: Position
    width: float = NODE_WIDTH
    height: float = NODE_HEIGHT
    opacity: float = 0.0

    @property
    def center(self) -> Position:
        return Position(
            x=self.position.x + self.width / 2,
            y=self.position.y + self.height / 2,
        )


class LaidOutEdge(EdgeSpec):
    opacity: float = 0.0
    animated: bool = False
    points: List[Position] = Field(default_factory=list)
