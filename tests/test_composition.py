"""Tests for the demo composition and its environment overrides."""

import pytest

from drafts_cli.composition import SCENES, load_timeline, load_timing
from drafts_cli.config import env_float, env_int
from drafts_cli.errors import ConfigError
from drafts_cli.timeline import OutputKind, TimingConfig, derive_state

ENV_VARS = [
    "DRAFTS_DEMO_FRAMES",
    "DRAFTS_DEMO_FPS",
    "DRAFTS_DEMO_TYPE_START",
    "DRAFTS_DEMO_TYPE_DURATION",
    "DRAFTS_DEMO_OUTPUT_DELAY",
    "DRAFTS_DEMO_BLINK_PERIOD",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_timeline(self):
        timeline = load_timeline()
        assert timeline.total_frames == 240
        assert timeline.fps == 30
        assert len(timeline.scenes) == 4
        assert timeline.frames_per_scene == 60

    def test_scene_order(self):
        kinds = [s.output_kind for s in SCENES]
        assert kinds == [OutputKind.LIST, OutputKind.CREATE, OutputKind.JSON, OutputKind.TAGS]

    def test_timing(self):
        assert load_timing() == TimingConfig(3, 18, 22, 15)

    def test_scenario(self):
        state = derive_state(65, load_timeline(), load_timing())
        assert (state.scene_index, state.local_frame) == (1, 5)


class TestOverrides:
    def test_frames(self, monkeypatch):
        monkeypatch.setenv("DRAFTS_DEMO_FRAMES", "120")
        assert load_timeline().frames_per_scene == 30

    def test_blank_uses_default(self, monkeypatch):
        monkeypatch.setenv("DRAFTS_DEMO_FPS", "  ")
        assert load_timeline().fps == 30

    def test_timing(self, monkeypatch):
        monkeypatch.setenv("DRAFTS_DEMO_BLINK_PERIOD", "10")
        monkeypatch.setenv("DRAFTS_DEMO_OUTPUT_DELAY", "30")
        timing = load_timing()
        assert timing.blink_period == 10
        assert timing.output_delay == 30

    def test_not_an_integer(self, monkeypatch):
        monkeypatch.setenv("DRAFTS_DEMO_FRAMES", "lots")
        with pytest.raises(ConfigError, match="DRAFTS_DEMO_FRAMES"):
            load_timeline()

    def test_too_few_frames(self, monkeypatch):
        monkeypatch.setenv("DRAFTS_DEMO_FRAMES", "2")
        with pytest.raises(ConfigError):
            load_timeline()

    def test_zero_duration(self, monkeypatch):
        monkeypatch.setenv("DRAFTS_DEMO_TYPE_DURATION", "0")
        with pytest.raises(ConfigError):
            load_timing()


class TestEnvHelpers:
    """Parsing shared by the demo and bridge overrides."""

    def test_float(self, monkeypatch):
        monkeypatch.setenv("DRAFTS_TEST_NUMBER", "2.5")
        assert env_float("DRAFTS_TEST_NUMBER", 30.0) == 2.5

    def test_float_default(self, monkeypatch):
        monkeypatch.delenv("DRAFTS_TEST_NUMBER", raising=False)
        assert env_float("DRAFTS_TEST_NUMBER", 30.0) == 30.0

    def test_float_not_a_number(self, monkeypatch):
        monkeypatch.setenv("DRAFTS_TEST_NUMBER", "soon")
        with pytest.raises(ConfigError, match="must be a number"):
            env_float("DRAFTS_TEST_NUMBER", 30.0)

    def test_float_not_positive(self, monkeypatch):
        monkeypatch.setenv("DRAFTS_TEST_NUMBER", "0")
        with pytest.raises(ConfigError, match="must be > 0"):
            env_float("DRAFTS_TEST_NUMBER", 30.0)

    def test_int(self, monkeypatch):
        monkeypatch.setenv("DRAFTS_TEST_NUMBER", "12")
        assert env_int("DRAFTS_TEST_NUMBER", 1) == 12
