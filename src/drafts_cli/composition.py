"""
DraftsCliDemo composition - the scenes and timing of the promo video.

Tuning values can be overridden from the environment (or a .env file) so the
pacing can be adjusted without touching code.
"""

from __future__ import annotations

from drafts_cli.config import env_int
from drafts_cli.timeline import OutputKind, Scene, Timeline, TimingConfig

COMPOSITION_ID = "DraftsCliDemo"
WIDTH, HEIGHT = 1280, 720

SCENES: tuple[Scene, ...] = (
    Scene("drafts list", OutputKind.LIST, "List All Drafts"),
    Scene('drafts new "New project idea" -t work', OutputKind.CREATE, "Create with Tags"),
    Scene("drafts get 574FEA89", OutputKind.JSON, "JSON Output"),
    Scene("drafts list -t work", OutputKind.TAGS, "Filter by Tags"),
)


def load_timeline() -> Timeline:
    """Build the demo timeline (240 frames at 30fps unless overridden)."""
    return Timeline(
        scenes=SCENES,
        total_frames=env_int("DRAFTS_DEMO_FRAMES", 240),
        fps=env_int("DRAFTS_DEMO_FPS", 30),
    )


def load_timing() -> TimingConfig:
    return TimingConfig(
        typewriter_start=env_int("DRAFTS_DEMO_TYPE_START", 3),
        typewriter_duration=env_int("DRAFTS_DEMO_TYPE_DURATION", 18),
        output_delay=env_int("DRAFTS_DEMO_OUTPUT_DELAY", 22),
        blink_period=env_int("DRAFTS_DEMO_BLINK_PERIOD", 15),
    )
