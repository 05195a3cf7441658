"""SVG rank badges."""

from __future__ import annotations

from html import escape

_TEMPLATE = """<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="20" role="img" aria-label="{label}: {value}">
<linearGradient id="s" x2="0" y2="100%"><stop offset="0" stop-color="#bbb" stop-opacity=".1"/><stop offset="1" stop-opacity=".1"/></linearGradient>
<rect width="{label_width}" height="20" fill="#555"/>
<rect x="{label_width}" width="{value_width}" height="20" fill="{color}"/>
<rect width="{width}" height="20" fill="url(#s)"/>
<g fill="#fff" text-anchor="middle" font-family="Verdana,Geneva,sans-serif" font-size="11">
<text x="{label_x}" y="14">{label}</text>
<text x="{value_x}" y="14">{value}</text>
</g>
</svg>
"""

LABEL = "rank"

_COLORS = {
    "A": "#4c1",
    "B": "#97ca00",
    "C": "#dfb317",
    "D": "#fe7d37",
    "E": "#fe7d37",
    "F": "#e05d44",
}
ERROR_COLOR = "#9f9f9f"


def color_for(rank: str) -> str:
    return _COLORS.get(rank[:1].upper(), ERROR_COLOR)


def render(value: str, color: str, label: str = LABEL) -> str:
    # ~7px per glyph at 11px Verdana plus padding
    label_width = 10 + 7 * len(label)
    value_width = 10 + 7 * len(value)
    return _TEMPLATE.format(
        width=label_width + value_width,
        label_width=label_width,
        value_width=value_width,
        label_x=label_width / 2,
        value_x=label_width + value_width / 2,
        label=escape(label),
        value=escape(value),
        color=color,
    )


def render_rank(rank: str) -> str:
    return render(rank, color_for(rank))


def render_error() -> str:
    """Placeholder shown when no rank is available."""
    return render("unavailable", ERROR_COLOR)
