"""Tests for the SVG frame renderer."""

import re
import xml.etree.ElementTree as ET

import pytest

from drafts_cli.composition import SCENES
from drafts_cli.fonts import FALLBACK_FONT_STACK, FONT_STACK
from drafts_cli.render import escape, render_svg
from drafts_cli.timeline import Timeline, derive_state

CURSOR = re.compile(r'<rect [^>]*width="3\.0"[^>]*opacity="([0-9.]+)"')


@pytest.fixture
def timeline():
    return Timeline(scenes=SCENES, total_frames=240, fps=30)


def render(frame, timeline, **kwargs):
    return render_svg(derive_state(frame, timeline), len(timeline.scenes), **kwargs)


class TestDocument:
    """Every frame must be a well-formed SVG document."""

    @pytest.mark.parametrize("frame", [0, 12, 30, 65, 130, 200, 239])
    def test_well_formed(self, frame, timeline):
        root = ET.fromstring(render(frame, timeline))
        assert root.tag.endswith("svg")
        assert root.get("width") == "1280"
        assert root.get("height") == "720"

    def test_font_stack(self, timeline):
        assert FONT_STACK in render(0, timeline)
        assert FALLBACK_FONT_STACK in render(0, timeline, font_stack=FALLBACK_FONT_STACK)

    def test_deterministic(self, timeline):
        assert render(77, timeline) == render(77, timeline)

    def test_escape(self):
        assert escape('a "b" <c> & d') == "a &quot;b&quot; &lt;c&gt; &amp; d"


class TestContent:
    def test_title(self, timeline):
        svg = render(0, timeline)
        assert "Drafts CLI" in svg
        assert "drafts - Terminal" in svg

    def test_feature_label(self, timeline):
        assert "CREATE WITH TAGS" in render(65, timeline)

    def test_typed_text(self, timeline):
        assert ">draft<" in render(12, timeline)

    def test_command_escaped(self, timeline):
        svg = render(60 + 40, timeline)
        assert "drafts new &quot;New project idea&quot; -t work" in svg

    def test_output_hidden_before_delay(self, timeline):
        assert "3 drafts found" not in render(21, timeline)

    def test_output_shown_after_delay(self, timeline):
        assert "3 drafts found" in render(22, timeline)

    @pytest.mark.parametrize("frame,marker", [
        (30, "3 drafts found"),
        (90, "Draft created"),
        (150, "Meeting Notes"),
        (210, "1 draft with tag &quot;work&quot;"),
    ])
    def test_output_per_scene(self, frame, marker, timeline):
        assert marker in render(frame, timeline)

    def test_progress_dots(self, timeline):
        svg = render(65, timeline)
        assert svg.count('width="32.0"') == 1
        assert svg.count('width="10.0"') == 3


class TestCursor:
    def test_hidden_before_typing(self, timeline):
        assert CURSOR.search(render(1, timeline)) is None

    def test_hidden_after_typing(self, timeline):
        assert CURSOR.search(render(25, timeline)) is None

    def test_blink_on(self, timeline):
        assert CURSOR.search(render(10, timeline)).group(1) == "1.000"

    def test_blink_off(self, timeline):
        assert CURSOR.search(render(16, timeline)).group(1) == "0.000"

    def test_static_ignores_blink(self, timeline):
        assert CURSOR.search(render(16, timeline, blink=False)).group(1) == "1.000"
