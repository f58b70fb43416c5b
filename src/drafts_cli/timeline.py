"""
Frame-driven presentation state for the demo video.

Every function here is a pure mapping from an explicit frame number (plus
read-only configuration) to what should be on screen. Nothing is cached and
nothing depends on previously rendered frames, so frames may be rendered in
any order on any number of worker processes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from drafts_cli.errors import ConfigError


# ─────────────────────────────────────────────────────────────────────────────
# Configuration Types
# ─────────────────────────────────────────────────────────────────────────────


class OutputKind(str, Enum):
    """Which canned result block a scene shows under its command."""

    LIST = "list"
    CREATE = "create"
    JSON = "json"
    TAGS = "tags"


@dataclass(frozen=True)
class Scene:
    """One demo segment: a typed command and the output it produces."""

    command: str
    output_kind: OutputKind
    description: str


@dataclass(frozen=True)
class Timeline:
    """Ordered scenes spread over a fixed number of frames."""

    scenes: tuple[Scene, ...]
    total_frames: int
    fps: int

    def __post_init__(self) -> None:
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "scenes", tuple(self.scenes))
        validate_timeline(self)

    @property
    def frames_per_scene(self) -> int:
        return frames_per_scene(self.total_frames, len(self.scenes))


@dataclass(frozen=True)
class TypewriterSpec:
    text: str
    start_frame: int
    reveal_duration: int


@dataclass(frozen=True)
class TimingConfig:
    """Per-scene animation timing, in frames.

    typewriter_start: local frame where typing begins.
    typewriter_duration: frames needed to type the whole command.
    output_delay: local frame where the output block appears.
    blink_period: frames per half blink cycle (on for N, off for N).
    """

    typewriter_start: int = 3
    typewriter_duration: int = 18
    output_delay: int = 22
    blink_period: int = 15

    def __post_init__(self) -> None:
        if self.typewriter_start < 0:
            raise ConfigError(f"typewriter_start must be >= 0, got {self.typewriter_start}")
        if self.typewriter_duration <= 0:
            raise ConfigError(f"typewriter_duration must be > 0, got {self.typewriter_duration}")
        if self.output_delay < 0:
            raise ConfigError(f"output_delay must be >= 0, got {self.output_delay}")
        if self.blink_period <= 0:
            raise ConfigError(f"blink_period must be > 0, got {self.blink_period}")

    def typewriter(self, text: str) -> TypewriterSpec:
        return TypewriterSpec(text, self.typewriter_start, self.typewriter_duration)


DEFAULT_TIMING = TimingConfig()


# ─────────────────────────────────────────────────────────────────────────────
# Derived State
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TypewriterProgress:
    chars_revealed: int
    cursor_active: bool


@dataclass(frozen=True)
class PresentationState:
    """Everything the renderer needs for one frame.

    ``cursor_active`` is the cursor's logical presence; ``cursor_blink_on``
    is a separate heartbeat signal that a renderer may ignore (for example
    when producing a static thumbnail).
    """

    scene_index: int
    local_frame: int
    chars_revealed: int
    cursor_active: bool
    cursor_blink_on: bool
    output_visible: bool
    output_kind: OutputKind = field(default=OutputKind.LIST)
    description: str = ""
    typed_text: str = ""

    @property
    def cursor_visible(self) -> bool:
        return self.cursor_active


# ─────────────────────────────────────────────────────────────────────────────
# Pure Frame Functions
# ─────────────────────────────────────────────────────────────────────────────


def validate_timeline(timeline: Timeline) -> None:
    """Raise ConfigError unless every scene gets at least one frame."""
    if not timeline.scenes:
        raise ConfigError("Timeline has no scenes configured")
    if timeline.fps <= 0:
        raise ConfigError(f"fps must be > 0, got {timeline.fps}")
    if timeline.total_frames < len(timeline.scenes):
        raise ConfigError(
            f"total_frames ({timeline.total_frames}) is shorter than the "
            f"number of scenes ({len(timeline.scenes)})"
        )


def frames_per_scene(total_frames: int, scene_count: int) -> int:
    """Split the duration into equal scene windows.

    The ``total_frames % scene_count`` tail frames are never needed: scene
    selection loops, so exact divisibility is not required.
    """
    if scene_count <= 0:
        raise ConfigError("No scenes configured")
    window = total_frames // scene_count
    if window <= 0:
        raise ConfigError(
            f"{total_frames} frames cannot show {scene_count} scenes at least once"
        )
    return window


def select_scene(frame: int, window: int, scene_count: int) -> tuple[int, int]:
    """Map an absolute frame to ``(scene_index, local_frame)``, looping forever."""
    if frame < 0:
        raise ValueError(f"frame must be >= 0, got {frame}")
    return (frame // window) % scene_count, frame % window


def typewriter_progress(local_frame: int, spec: TypewriterSpec) -> TypewriterProgress:
    """How many characters of ``spec.text`` are typed at ``local_frame``."""
    if spec.reveal_duration <= 0:
        raise ConfigError(f"reveal_duration must be > 0, got {spec.reveal_duration}")

    elapsed = max(0, min(local_frame - spec.start_frame, spec.reveal_duration))
    chars = len(spec.text) * elapsed // spec.reveal_duration
    active = spec.start_frame <= local_frame < spec.start_frame + spec.reveal_duration
    return TypewriterProgress(chars_revealed=chars, cursor_active=active)


def output_visible(local_frame: int, reveal_frame: int) -> bool:
    """Hard step: hidden before ``reveal_frame``, shown from it onwards."""
    return local_frame >= reveal_frame


def blink_on(frame: int, blink_period: int) -> bool:
    """Cursor heartbeat on the absolute frame, ignoring scene boundaries."""
    if blink_period <= 0:
        raise ConfigError(f"blink_period must be > 0, got {blink_period}")
    return (frame // blink_period) % 2 == 0


def derive_state(
    frame: int,
    timeline: Timeline,
    timing: TimingConfig = DEFAULT_TIMING,
) -> PresentationState:
    """Compute the full presentation state for one absolute frame."""
    validate_timeline(timeline)
    window = frames_per_scene(timeline.total_frames, len(timeline.scenes))
    scene_index, local_frame = select_scene(frame, window, len(timeline.scenes))
    scene = timeline.scenes[scene_index]

    progress = typewriter_progress(local_frame, timing.typewriter(scene.command))

    return PresentationState(
        scene_index=scene_index,
        local_frame=local_frame,
        chars_revealed=progress.chars_revealed,
        cursor_active=progress.cursor_active,
        cursor_blink_on=blink_on(frame, timing.blink_period),
        output_visible=output_visible(local_frame, timing.output_delay),
        output_kind=scene.output_kind,
        description=scene.description,
        typed_text=scene.command[:progress.chars_revealed],
    )
