import base64
import mimetypes
from pathlib import Path


def encode_image_data_uri(path: str | Path) -> str:
    """Read an image file into a base64 `data:` URI for vision models."""
    path = Path(path)
    mime, _ = mimetypes.guess_type(path.name)
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime or 'application/octet-stream'};base64,{encoded}"
