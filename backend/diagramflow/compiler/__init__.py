from diagramflow.compiler.layout import (
    LayoutDirection,
    LayoutResult,
    apply_layout,
    compute_layout,
)

__all__ = [
    "LayoutDirection",
    "LayoutResult",
    "apply_layout",
    "compute_layout",
]
