"""
SVG frame renderer for the DraftsCliDemo video.

Turns a PresentationState into one SVG document: a flat title card with a
terminal window showing the typed command, the blinking cursor, the canned
output block, and a feature label with progress dots underneath.
"""

from __future__ import annotations

from drafts_cli.composition import HEIGHT, WIDTH
from drafts_cli.fonts import FONT_STACK
from drafts_cli.timeline import OutputKind, PresentationState

# === Color Palette ===
COLORS = {
    "white": "#ffffff",
    "primary": "#003471",
    "secondary": "#6288b5",
    "command": "#6bcbff",
    "accent": "#ff9f43",
    "text": "#e8e8e8",
    # Terminal chrome
    "terminal": "#1a1a2e",
    "title_bar": "#252540",
    "border": "#3a3a5a",
    "title_text": "#888888",
    # Output highlighting
    "string": "#7ec87e",
    "key": "#6bb8ff",
    "bracket": "#b794f6",
    "success": "#4ade80",
    "muted": "#888888",
    "rule": "#444444",
}

TRAFFIC_LIGHTS = ["#ff5f57", "#febc2e", "#28c840"]

# Terminal geometry
TERM_W, TERM_H = 1100, 480
TERM_X = (WIDTH - TERM_W) / 2
TERM_Y = 150
BAR_H = 44
PAD_X, PAD_Y = 40, 28
COMMAND_SIZE = 28
# Monospace advance as a fraction of font size
CHAR_ADVANCE = 0.6


# === SVG Helpers ===

def escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")


def svg_header(font_stack: str) -> str:
    return (f'<svg xmlns="http://www.w3.org/2000/svg" width="{WIDTH}" height="{HEIGHT}" '
            f'viewBox="0 0 {WIDTH} {HEIGHT}" font-family="{font_stack}">\n'
            f'  <rect width="{WIDTH}" height="{HEIGHT}" fill="{COLORS["primary"]}"/>')


def svg_footer() -> str:
    return "</svg>"


def svg_rect(x: float, y: float, w: float, h: float, fill: str,
             rx: float = 0, stroke: str | None = None, stroke_width: float = 0,
             opacity: float = 1.0) -> str:
    stroke_attr = f' stroke="{stroke}" stroke-width="{stroke_width}"' if stroke else ""
    return (f'  <rect x="{x:.1f}" y="{y:.1f}" width="{w:.1f}" height="{h:.1f}" '
            f'rx="{rx:.1f}" fill="{fill}"{stroke_attr} opacity="{opacity:.3f}"/>')


def svg_text(x: float, y: float, text: str, size: float = 18,
             fill: str = "#e8e8e8", anchor: str = "start",
             weight: str = "normal", letter_spacing: float = 0) -> str:
    spacing = f' letter-spacing="{letter_spacing:.2f}"' if letter_spacing else ""
    return (f'  <text x="{x:.1f}" y="{y:.1f}" font-size="{size:.1f}" '
            f'font-weight="{weight}" fill="{fill}" text-anchor="{anchor}"{spacing} '
            f'xml:space="preserve">{escape(text)}</text>')


def svg_spans(x: float, y: float, segments: list[tuple[str, str]],
              size: float = 18, weight: str = "normal") -> str:
    """One line of differently colored segments. segments = [(color, text), ...]"""
    spans = "".join(f'<tspan fill="{color}">{escape(text)}</tspan>' for color, text in segments)
    return (f'  <text x="{x:.1f}" y="{y:.1f}" font-size="{size:.1f}" '
            f'font-weight="{weight}" xml:space="preserve">{spans}</text>')


# === Output Blocks ===

# Each line is (font size, weight, segments); size 0 draws a horizontal rule
OutputLine = tuple[int, str, list[tuple[str, str]]]


def _json_lines(uuid: str, title: str, tags: list[str]) -> list[OutputLine]:
    tag_segments: list[tuple[str, str]] = [(COLORS["bracket"], "[")]
    for i, tag in enumerate(tags):
        if i:
            tag_segments.append((COLORS["text"], ", "))
        tag_segments.append((COLORS["string"], f'"{tag}"'))
    tag_segments.append((COLORS["bracket"], "]"))
    return [
        (18, "normal", [(COLORS["bracket"], "{")]),
        (18, "normal", [(COLORS["text"], "  "), (COLORS["key"], '"uuid"'), (COLORS["text"], ": "),
                        (COLORS["string"], f'"{uuid}"'), (COLORS["text"], ",")]),
        (18, "normal", [(COLORS["text"], "  "), (COLORS["key"], '"title"'), (COLORS["text"], ": "),
                        (COLORS["string"], f'"{title}"'), (COLORS["text"], ",")]),
        (18, "normal", [(COLORS["text"], "  "), (COLORS["key"], '"tags"'), (COLORS["text"], ": "),
                        *tag_segments]),
        (18, "normal", [(COLORS["bracket"], "}")]),
    ]


def _list_row(uuid: str, title: str, folder: str) -> OutputLine:
    return (18, "normal", [(COLORS["string"], f"{uuid}...  "), (COLORS["text"], f"{title:<23}"),
                           (COLORS["muted"], folder)])


OUTPUT_LINES: dict[OutputKind, list[OutputLine]] = {
    OutputKind.LIST: [
        (18, "600", [(COLORS["key"], "UUID           TITLE                  FOLDER")]),
        (0, "normal", []),
        _list_row("574FEA89", "Weekly meeting notes", "inbox"),
        _list_row("A1B2C3D4", "Project roadmap", "inbox"),
        _list_row("E5F67890", "Shopping list", "inbox"),
        (16, "normal", [(COLORS["muted"], "3 drafts found")]),
    ],
    OutputKind.CREATE: [
        (20, "600", [(COLORS["success"], "Draft created")]),
        *_json_lines("A1B2C3D4...", "New project idea", ["work"]),
    ],
    OutputKind.JSON: _json_lines("574FEA89...", "Meeting Notes", ["work", "important"]),
    OutputKind.TAGS: [
        (18, "normal", [(COLORS["key"], f"{'work':<12}"), (COLORS["muted"], "5 drafts")]),
        (18, "normal", [(COLORS["key"], f"{'important':<12}"), (COLORS["muted"], "3 drafts")]),
        (18, "normal", [(COLORS["key"], f"{'ideas':<12}"), (COLORS["muted"], "8 drafts")]),
        (16, "normal", [(COLORS["muted"], '1 draft with tag "work"')]),
    ],
}


def svg_output_block(kind: OutputKind, x: float, y: float, width: float) -> str:
    parts = []
    for size, weight, segments in OUTPUT_LINES[kind]:
        if size == 0:
            parts.append(f'  <line x1="{x:.1f}" y1="{y - 8:.1f}" x2="{x + width:.1f}" '
                         f'y2="{y - 8:.1f}" stroke="{COLORS["rule"]}" stroke-width="1"/>')
            y += 12
            continue
        y += size * 1.5
        parts.append(svg_spans(x, y, segments, size=size, weight=weight))
    return "\n".join(parts)


# === Frame Composition ===

def svg_terminal(state: PresentationState, blink: bool) -> str:
    parts = []
    parts.append(svg_rect(TERM_X, TERM_Y, TERM_W, TERM_H, COLORS["terminal"], rx=12,
                          stroke=COLORS["border"], stroke_width=2))
    parts.append(svg_rect(TERM_X + 1, TERM_Y + 1, TERM_W - 2, BAR_H, COLORS["title_bar"], rx=11))
    parts.append(f'  <line x1="{TERM_X:.1f}" y1="{TERM_Y + BAR_H:.1f}" x2="{TERM_X + TERM_W:.1f}" '
                 f'y2="{TERM_Y + BAR_H:.1f}" stroke="{COLORS["border"]}" stroke-width="1"/>')
    for i, color in enumerate(TRAFFIC_LIGHTS):
        parts.append(f'  <circle cx="{TERM_X + 22 + i * 20:.1f}" cy="{TERM_Y + BAR_H / 2:.1f}" '
                     f'r="6" fill="{color}"/>')
    parts.append(svg_text(TERM_X + TERM_W / 2, TERM_Y + BAR_H / 2 + 5, "drafts - Terminal",
                          size=13, fill=COLORS["title_text"], anchor="middle", weight="500"))

    # Command line
    line_x = TERM_X + PAD_X
    line_y = TERM_Y + BAR_H + PAD_Y + COMMAND_SIZE
    parts.append(svg_text(line_x, line_y, "$", size=COMMAND_SIZE, fill=COLORS["accent"], weight="600"))
    text_x = line_x + COMMAND_SIZE * CHAR_ADVANCE + 14
    if state.typed_text:
        parts.append(svg_text(text_x, line_y, state.typed_text, size=COMMAND_SIZE,
                              fill=COLORS["command"]))

    if state.cursor_visible:
        cursor_x = text_x + len(state.typed_text) * COMMAND_SIZE * CHAR_ADVANCE + 4
        opacity = 1.0 if (state.cursor_blink_on or not blink) else 0.0
        parts.append(svg_rect(cursor_x, line_y - COMMAND_SIZE + 4, 3, COMMAND_SIZE,
                              COLORS["command"], opacity=opacity))

    if state.output_visible:
        parts.append(svg_output_block(state.output_kind, line_x, line_y + 28, TERM_W - 2 * PAD_X))

    return "\n".join(parts)


def svg_feature_indicator(state: PresentationState, scene_count: int) -> str:
    parts = []
    parts.append(svg_text(WIDTH / 2, HEIGHT - 42, state.description.upper(), size=16,
                          fill=COLORS["white"], anchor="middle", weight="600",
                          letter_spacing=0.8))

    dot_widths = [32 if i == state.scene_index else 10 for i in range(scene_count)]
    gap = 12
    x = WIDTH / 2 - (sum(dot_widths) + gap * (scene_count - 1)) / 2
    for i, w in enumerate(dot_widths):
        fill = COLORS["accent"] if i == state.scene_index else COLORS["secondary"]
        parts.append(svg_rect(x, HEIGHT - 26, w, 10, fill, rx=5))
        x += w + gap
    return "\n".join(parts)


def render_svg(state: PresentationState, scene_count: int,
               font_stack: str = FONT_STACK, blink: bool = True) -> str:
    """Render one frame. Pass ``blink=False`` for static thumbnails."""
    parts = [svg_header(font_stack)]
    parts.append(svg_text(WIDTH / 2, 88, "Drafts CLI", size=48, fill=COLORS["white"],
                          anchor="middle", weight="700"))
    parts.append(svg_text(WIDTH / 2, 122, "Edit your Drafts from the command line", size=18,
                          fill=COLORS["secondary"], anchor="middle"))
    parts.append(svg_terminal(state, blink))
    parts.append(svg_feature_indicator(state, scene_count))
    parts.append(svg_footer())
    return "\n".join(parts)
