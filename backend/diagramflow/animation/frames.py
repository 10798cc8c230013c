from typing import List

from diagramflow.animation.reveal import RevealAnimation
from diagramflow.animation.scheduler import ManualScheduler
from diagramflow.compiler.layout import LayoutDirection
from diagramflow.ir.graph import GraphSpec
from diagramflow.renderer.svg_renderer import render_svg


def export_frames(
    graph: GraphSpec,
    direction: LayoutDirection = LayoutDirection.TOP_DOWN,
) -> List[str]:
    """One SVG per reveal step: frame 0 is the empty canvas, the last frame the full diagram."""
    scheduler = ManualScheduler()
    animation = RevealAnimation(graph, scheduler=scheduler, direction=direction)

    frames = [render_svg(animation.nodes, animation.edges)]
    while scheduler.step():
        frames.append(render_svg(animation.nodes, animation.edges))

    return frames
