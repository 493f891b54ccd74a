"""
Lightweight visualization utilities decoupled from Streamlit to enable testing.

Turns a rendered flow scene (the element dicts produced by
`splitflow_core.render.RenderSurface`) into a standalone SVG document.
"""

from __future__ import annotations

import html
from typing import Any, Dict, Iterable, List, Sequence, Tuple


def _fmt(v: float) -> str:
    return f"{float(v):.2f}".rstrip("0").rstrip(".")


def basis_commands(points: Sequence[Tuple[float, float]], start_with_move: bool = True) -> List[str]:
    """Uniform cubic B-spline through `points`, as SVG path commands.

    The curve starts and ends on the first and last points and is pulled
    towards, not through, the points in between.
    """
    cmds: List[str] = []
    if not points:
        return cmds
    first = points[0]
    cmds.append(("M" if start_with_move else "L") + f"{_fmt(first[0])},{_fmt(first[1])}")
    if len(points) == 1:
        return cmds
    if len(points) == 2:
        cmds.append(f"L{_fmt(points[1][0])},{_fmt(points[1][1])}")
        return cmds

    def bezier(p0, p1, p):
        c1 = ((2 * p0[0] + p1[0]) / 3, (2 * p0[1] + p1[1]) / 3)
        c2 = ((p0[0] + 2 * p1[0]) / 3, (p0[1] + 2 * p1[1]) / 3)
        end = ((p0[0] + 4 * p1[0] + p[0]) / 6, (p0[1] + 4 * p1[1] + p[1]) / 6)
        return f"C{_fmt(c1[0])},{_fmt(c1[1])},{_fmt(c2[0])},{_fmt(c2[1])},{_fmt(end[0])},{_fmt(end[1])}"

    p0, p1 = points[0], points[1]
    cmds.append(f"L{_fmt((5 * p0[0] + p1[0]) / 6)},{_fmt((5 * p0[1] + p1[1]) / 6)}")
    for p in points[2:]:
        cmds.append(bezier(p0, p1, p))
        p0, p1 = p1, p
    cmds.append(bezier(p0, p1, p1))
    cmds.append(f"L{_fmt(p1[0])},{_fmt(p1[1])}")
    return cmds


def area_path(samples: Iterable[Sequence[float]]) -> str:
    """Closed outline of a band from (x, y_top, y_bottom) samples."""
    samples = list(samples)
    if not samples:
        return ""
    top = [(s[0], s[1]) for s in samples]
    bottom = [(s[0], s[2]) for s in reversed(samples)]
    return "".join(basis_commands(top) + basis_commands(bottom, start_with_move=False)) + "Z"


def _gradient_svg(el: Dict[str, Any]) -> str:
    stops = "".join(
        f'<stop offset="{s["offset"]}" stop-color="{s["color"]}" stop-opacity="{s["opacity"]}"/>'
        for s in el["stops"]
    )
    return (
        f'<linearGradient id="{el["id"]}" x1="{el["x1"]}" y1="{el["y1"]}" x2="{el["x2"]}" y2="{el["y2"]}">'
        f"{stops}</linearGradient>"
    )


def _circle_svg(el: Dict[str, Any]) -> str:
    opacity = f' opacity="{el["opacity"]}"' if "opacity" in el else ""
    return (
        f'<circle id="{el["id"]}" cx="{_fmt(el["cx"])}" cy="{_fmt(el["cy"])}" r="{_fmt(el["r"])}" '
        f'fill="{el["fill"]}" stroke="{el["stroke"]}" stroke-width="{_fmt(el["strokeWidth"])}"{opacity}/>'
    )


def _element_svg(el: Dict[str, Any]) -> str:
    kind = el["kind"]
    if kind in ("source", "endpoint"):
        return _circle_svg(el)
    if kind == "band":
        return (
            f'<path id="{el["id"]}" class="flow-{el["flow"]}" d="{area_path(el["path"])}" '
            f'fill="{el["fill"]}" opacity="{el["opacity"]}" style="cursor: pointer"/>'
        )
    if kind == "label":
        return (
            f'<text id="{el["id"]}" x="{_fmt(el["x"])}" y="{_fmt(el["y"])}" text-anchor="{el["textAnchor"]}" '
            f'fill="{el["fill"]}" font-size="{el["fontSize"]}" font-weight="{el["fontWeight"]}" '
            f'style="pointer-events: none; opacity: {el["opacity"]}">{html.escape(el["text"])}</text>'
        )
    # panels and rows belong to the surrounding page, not the canvas
    return ""


def scene_to_svg(
    elements: Sequence[Dict[str, Any]],
    width: float = 500,
    height: float = 350,
    particles: Sequence[Dict[str, Any]] = (),
) -> str:
    """
    Render scene elements (and optional particle frames) to an SVG document.

    Args:
        elements: Output of `RenderSurface.rebuild` / `RenderSurface.elements`
        width: viewBox width
        height: viewBox height
        particles: Frames from `ParticleSystem.sample`

    Returns:
        str: SVG markup
    """
    lines = [
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {_fmt(width)} {_fmt(height)}" style="overflow: visible">'
    ]
    gradients = [e for e in elements if e["kind"] == "gradient"]
    if gradients:
        lines.append("<defs>" + "".join(_gradient_svg(g) for g in gradients) + "</defs>")

    for el in elements:
        if el["kind"] == "source":
            lines.append(_element_svg(el))

    flows: Dict[int, List[str]] = {}
    for el in elements:
        if el["kind"] in ("band", "endpoint", "label"):
            flows.setdefault(el["flow"], []).append(_element_svg(el))
    for index in sorted(flows):
        lines.append(f'<g class="flow-{index}">' + "".join(flows[index]) + "</g>")

    for p in particles:
        lines.append(
            f'<circle class="particle" cx="{_fmt(p["x"])}" cy="{_fmt(p["y"])}" r="{_fmt(p["r"])}" '
            f'fill="{p["fill"]}" opacity="{p["opacity"]:.3f}"/>'
        )
    lines.append("</svg>")
    return "\n".join(lines)


def recipient_rows_html(elements: Sequence[Dict[str, Any]]) -> str:
    """HTML for the source panel and recipient list that flank the canvas."""
    parts: List[str] = []
    for el in elements:
        if el["kind"] == "source_panel":
            link = (
                f'<a href="{html.escape(el["href"])}" target="_blank">{html.escape(el["label"])}</a>'
                if el["href"] else ""
            )
            parts.append(
                f'<div class="source-panel"><div class="balance">{html.escape(el["balance"])}</div>'
                f'<div class="caption">{html.escape(el["caption"])}</div>{link}</div>'
            )
        elif el["kind"] == "recipient_row":
            start, end = el["swatch"]
            cls = "recipient-row highlighted" if el["highlighted"] else "recipient-row"
            parts.append(
                f'<div class="{cls}" data-flow="{el["flow"]}">'
                f'<span class="swatch" style="background: linear-gradient(45deg, {start}, {end})"></span>'
                f'<a href="{html.escape(el["href"])}" target="_blank">{html.escape(el["label"])}</a>'
                f'<span class="percentage">{html.escape(el["percentage"])}</span></div>'
            )
    return "\n".join(parts)
