from html import escape
from typing import Dict, List, Sequence

from diagramflow.ir.graph import LaidOutEdge, LaidOutNode

DEFAULT_FILL = "#E3F2FD"
DEFAULT_STROKE = "#1E88E5"
DEFAULT_TEXT = "#1A1A1A"
EDGE_STROKE = "#555"

ANIMATION_CSS = (
    "<style>"
    ".edge-animated{stroke-dasharray:5;animation:dashdraw .5s linear infinite;}"
    "@keyframes dashdraw{from{stroke-dashoffset:10;}}"
    "</style>"
)

ARROW_MARKER = (
    '<defs><marker id="arrow" viewBox="0 0 10 10" refX="10" refY="5" '
    'markerWidth="8" markerHeight="8" orient="auto-start-reverse">'
    f'<path d="M 0 0 L 10 5 L 0 10 z" fill="{EDGE_STROKE}"/></marker></defs>'
)


def _px(value, default: float) -> float:
    if value is None:
        return float(default)
    try:
        return float(str(value).strip().removesuffix("px"))
    except ValueError:
        return float(default)


def _border_color(border) -> str:
    # CSS shorthand like "1px solid #1E88E5": the colour is the last token
    if not border:
        return DEFAULT_STROKE
    return str(border).split()[-1]


def node_style(style: Dict) -> Dict[str, str]:
    return {
        "fill": str(style.get("backgroundColor") or style.get("background") or DEFAULT_FILL),
        "stroke": _border_color(style.get("border")),
        "radius": str(_px(style.get("borderRadius"), 8)),
        "text": str(style.get("color") or DEFAULT_TEXT),
    }


def _bounds(nodes: Sequence[LaidOutNode], edges: Sequence[LaidOutEdge]):
    xs, ys = [], []
    for n in nodes:
        xs += [n.position.x, n.position.x + n.width]
        ys += [n.position.y, n.position.y + n.height]
    for e in edges:
        xs += [p.x for p in e.points]
        ys += [p.y for p in e.points]
    if not xs:
        return 0.0, 0.0, 0.0, 0.0
    return min(xs), min(ys), max(xs), max(ys)


def _clip_to_box(x1, y1, x2, y2, node: LaidOutNode):
    """Where the segment from (x1, y1) to the node centre (x2, y2) crosses the node border."""
    dx, dy = x2 - x1, y2 - y1
    if dx == 0 and dy == 0:
        return x2, y2
    half_w, half_h = node.width / 2, node.height / 2
    scale = min(
        half_w / abs(dx) if dx else float("inf"),
        half_h / abs(dy) if dy else float("inf"),
        1.0,
    )
    return x2 - dx * scale, y2 - dy * scale


def render_svg(
    nodes: Sequence[LaidOutNode],
    edges: Sequence[LaidOutEdge],
    padding: float = 20,
) -> str:
    min_x, min_y, max_x, max_y = _bounds(nodes, edges)
    w = max_x - min_x + padding * 2
    h = max_y - min_y + padding * 2

    svg: List[str] = [
        f'<svg width="{w:g}" height="{h:g}" viewBox="{min_x - padding:g} {min_y - padding:g} {w:g} {h:g}" '
        'xmlns="http://www.w3.org/2000/svg">',
        ANIMATION_CSS,
        ARROW_MARKER,
    ]

    node_map = {n.id: n for n in nodes}

    # Draw edges first
    for e in edges:
        if len(e.points) < 2:
            continue

        points = [(p.x, p.y) for p in e.points]
        src, dst = node_map.get(e.source), node_map.get(e.target)
        if src is not None and src is not dst:
            points[0] = _clip_to_box(*points[1], *points[0], src)
        if dst is not None and src is not dst:
            points[-1] = _clip_to_box(*points[-2], *points[-1], dst)

        stroke = escape(str(e.style.get("stroke") or EDGE_STROKE))
        css_class = ' class="edge-animated"' if e.animated else ""
        path = " ".join(f"{x:g},{y:g}" for x, y in points)
        svg.append(
            f'<polyline id="edge-{escape(e.id)}" points="{path}" fill="none" '
            f'stroke="{stroke}" stroke-width="2" opacity="{e.opacity:g}" '
            f'marker-end="url(#arrow)"{css_class}/>'
        )

        if e.label:
            mid = e.points[len(e.points) // 2] if len(e.points) > 2 else None
            lx = mid.x if mid else (points[0][0] + points[-1][0]) / 2
            ly = mid.y if mid else (points[0][1] + points[-1][1]) / 2
            svg.append(
                f'<text x="{lx:g}" y="{ly:g}" text-anchor="middle" '
                f'font-family="Arial" font-size="11" fill="#333" opacity="{e.opacity:g}">'
                f'{escape(e.label)}</text>'
            )

    # Draw nodes
    for n in nodes:
        style = node_style(n.style)
        svg.append(
            f'<g id="node-{escape(n.id)}" opacity="{n.opacity:g}">'
            f'<rect x="{n.position.x:g}" y="{n.position.y:g}" '
            f'width="{n.width:g}" height="{n.height:g}" '
            f'rx="{style["radius"]}" ry="{style["radius"]}" '
            f'fill="{escape(style["fill"])}" stroke="{escape(style["stroke"])}"/>'
            f'<text x="{n.position.x + n.width / 2:g}" y="{n.position.y + n.height / 2:g}" '
            f'text-anchor="middle" dominant-baseline="middle" '
            f'font-family="Arial" font-size="14" fill="{escape(style["text"])}">'
            f'{escape(n.label)}</text></g>'
        )

    svg.append("</svg>")
    return "\n".join(svg)
