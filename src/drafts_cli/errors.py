"""Exception types shared across drafts-cli."""

from __future__ import annotations


class ConfigError(ValueError):
    """Invalid static configuration (scene list, frame windows, tuning values).

    Raised where the configuration is first used and never retried.
    """


class ResourceError(RuntimeError):
    """A render asset (currently the terminal font) could not be resolved."""


class BridgeError(RuntimeError):
    """The Drafts scripting bridge (osascript) failed or is unavailable."""
