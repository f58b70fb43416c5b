"""
Terminal font resolution for the demo renderer.

The font is a process-wide resource that is resolved once. Concurrent
callers of ``acquire()`` await the same in-flight lookup instead of racing
to start their own; after that the resolved font stack is reused.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from drafts_cli.errors import ResourceError

logger = logging.getLogger("drafts_cli")

FONT_FAMILY = "JetBrains Mono"
# SVG font-family values; single quotes so they nest inside attributes
FONT_STACK = "'JetBrains Mono', 'SF Mono', Monaco, Consolas, monospace"
FALLBACK_FONT_STACK = "'SF Mono', Monaco, Consolas, monospace"

FC_MATCH_TIMEOUT = 10


class FontState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


async def resolve_with_fontconfig(family: str) -> str:
    """Ask fontconfig whether ``family`` is installed; return the SVG font stack."""
    try:
        proc = await asyncio.create_subprocess_exec(
            "fc-match", "-f", "%{family}", family,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ResourceError(f"fontconfig unavailable: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), FC_MATCH_TIMEOUT)
    except asyncio.TimeoutError as e:
        proc.kill()
        await proc.wait()
        raise ResourceError(f"fc-match timed out after {FC_MATCH_TIMEOUT}s") from e

    if proc.returncode != 0:
        raise ResourceError(f"fc-match failed: {stderr.decode(errors='replace').strip()}")

    # fc-match always answers with its closest match; a different family means
    # the one we asked for is not installed
    matched = stdout.decode(errors="replace")
    if family.lower() not in matched.lower():
        raise ResourceError(f"Font '{family}' is not installed (closest match: {matched or 'none'})")
    return FONT_STACK


class FontResource:
    """Once-initialised font handle: UNINITIALIZED -> LOADING -> READY."""

    def __init__(
        self,
        family: str = FONT_FAMILY,
        resolver: Callable[[str], Awaitable[str]] = resolve_with_fontconfig,
    ) -> None:
        self.family = family
        self._resolver = resolver
        self._state = FontState.UNINITIALIZED
        self._stack: str | None = None
        self._task: asyncio.Future[str] | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> FontState:
        return self._state

    async def acquire(self) -> str:
        """Return the resolved font stack, loading it on first use.

        Raises ResourceError if resolution fails; the resource then stays
        FAILED until ``reset()`` is called.
        """
        if self._state is FontState.READY and self._stack is not None:
            return self._stack

        async with self._lock:
            if self._task is None:
                self._state = FontState.LOADING
                self._task = asyncio.ensure_future(self._load())
            task = self._task
        # Shielded: cancelling one caller leaves the shared load running
        return await asyncio.shield(task)

    async def _load(self) -> str:
        logger.debug(f"Resolving font '{self.family}'")
        try:
            stack = await self._resolver(self.family)
        except BaseException:
            self._state = FontState.FAILED
            raise
        self._stack = stack
        self._state = FontState.READY
        logger.info(f"Font ready: {self.family}")
        return stack

    def reset(self) -> None:
        """Forget a failed load so the next ``acquire()`` tries again."""
        if self._state is FontState.LOADING:
            raise RuntimeError("Cannot reset a font resource while it is loading")
        if self._state is FontState.FAILED:
            self._state = FontState.UNINITIALIZED
            self._task = None


# Shared handle used by the render driver
terminal_font = FontResource()
