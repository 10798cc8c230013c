from pydantic import BaseModel
from typing import Optional

from diagramflow.compiler.layout import LayoutDirection
from diagramflow.ir.graph import GraphSpec


class GenerateRequest(BaseModel):
    description: str
    image: Optional[str] = None  # data URI, forwarded to image-capable cloud models only


class LayoutRequest(BaseModel):
    graph: GraphSpec
    direction: LayoutDirection = LayoutDirection.TOP_DOWN


class SpeedRequest(BaseModel):
    speed: float


class DirectionRequest(BaseModel):
    direction: LayoutDirection


class SettingsUpdate(BaseModel):
    api_mode: Optional[str] = None
    ollama_endpoint: Optional[str] = None
    ollama_model: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_model: Optional[str] = None
    openai_base_url: Optional[str] = None
