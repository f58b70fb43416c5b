"""Tests for the once-initialised terminal font resource."""

import asyncio

import pytest

from drafts_cli import fonts
from drafts_cli.errors import ResourceError
from drafts_cli.fonts import FONT_STACK, FontResource, FontState, resolve_with_fontconfig


class CountingResolver:
    """Resolver stub that yields to the loop so callers overlap."""

    def __init__(self, fail_times: int = 0):
        self.calls = 0
        self.fail_times = fail_times

    async def __call__(self, family: str) -> str:
        self.calls += 1
        await asyncio.sleep(0.01)
        if self.calls <= self.fail_times:
            raise ResourceError(f"{family} unavailable")
        return f"'{family}', monospace"


class FakeProcess:
    def __init__(self, stdout: bytes, returncode: int = 0, stderr: bytes = b""):
        self._stdout = stdout
        self._stderr = stderr
        self.returncode = returncode

    async def communicate(self):
        return self._stdout, self._stderr

    def kill(self):
        self.killed = True

    async def wait(self):
        self.reaped = True
        return self.returncode


class TestLifecycle:
    def test_starts_uninitialized(self):
        assert FontResource(resolver=CountingResolver()).state is FontState.UNINITIALIZED

    def test_ready_after_acquire(self):
        resource = FontResource("Test Mono", resolver=CountingResolver())
        stack = asyncio.run(resource.acquire())
        assert stack == "'Test Mono', monospace"
        assert resource.state is FontState.READY

    def test_loaded_once(self):
        resolver = CountingResolver()
        resource = FontResource(resolver=resolver)

        async def run():
            await resource.acquire()
            await resource.acquire()

        asyncio.run(run())
        assert resolver.calls == 1

    def test_concurrent_callers_share_load(self):
        """Callers arriving mid-load await the same in-flight lookup."""
        resolver = CountingResolver()
        resource = FontResource(resolver=resolver)
        states = []

        async def run():
            first = asyncio.ensure_future(resource.acquire())
            await asyncio.sleep(0)
            states.append(resource.state)
            rest = await asyncio.gather(*(resource.acquire() for _ in range(5)))
            return [await first, *rest]

        results = asyncio.run(run())
        assert resolver.calls == 1
        assert states == [FontState.LOADING]
        assert len(set(results)) == 1


    def test_cancelled_caller_leaves_load_running(self):
        """Cancelling one waiter does not cancel the lookup others await."""
        calls = []

        async def run():
            gate = asyncio.Event()

            async def resolver(family):
                calls.append(family)
                await gate.wait()
                return FONT_STACK

            resource = FontResource(resolver=resolver)
            first = asyncio.ensure_future(resource.acquire())
            second = asyncio.ensure_future(resource.acquire())
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            first.cancel()
            with pytest.raises(asyncio.CancelledError):
                await first
            gate.set()
            return await second, resource.state

        stack, state = asyncio.run(run())
        assert stack == FONT_STACK
        assert state is FontState.READY
        assert len(calls) == 1


class TestFailure:
    def test_failed_state(self):
        resource = FontResource(resolver=CountingResolver(fail_times=1))
        with pytest.raises(ResourceError):
            asyncio.run(resource.acquire())
        assert resource.state is FontState.FAILED

    def test_stays_failed_without_reset(self):
        resolver = CountingResolver(fail_times=1)
        resource = FontResource(resolver=resolver)

        async def run():
            for _ in range(2):
                with pytest.raises(ResourceError):
                    await resource.acquire()

        asyncio.run(run())
        assert resolver.calls == 1

    def test_reset_allows_retry(self):
        resolver = CountingResolver(fail_times=1)
        resource = FontResource(resolver=resolver)

        async def run():
            with pytest.raises(ResourceError):
                await resource.acquire()
            resource.reset()
            assert resource.state is FontState.UNINITIALIZED
            return await resource.acquire()

        assert asyncio.run(run()).endswith("monospace")
        assert resolver.calls == 2
        assert resource.state is FontState.READY

    def test_reset_keeps_ready_font(self):
        resolver = CountingResolver()
        resource = FontResource(resolver=resolver)

        async def run():
            await resource.acquire()
            resource.reset()
            await resource.acquire()

        asyncio.run(run())
        assert resolver.calls == 1

    def test_cancelled_load_can_be_reset(self):
        attempts = []

        async def resolver(family):
            attempts.append(family)
            if len(attempts) == 1:
                raise asyncio.CancelledError()
            return FONT_STACK

        resource = FontResource(resolver=resolver)

        async def run():
            try:
                await resource.acquire()
            except asyncio.CancelledError:
                pass
            assert resource.state is FontState.FAILED
            resource.reset()
            return await resource.acquire()

        assert asyncio.run(run()) == FONT_STACK
        assert len(attempts) == 2


class TestFontconfig:
    def test_installed(self, monkeypatch):
        async def fake_exec(*args, **kwargs):
            assert args[:3] == ("fc-match", "-f", "%{family}")
            return FakeProcess(b"JetBrains Mono")

        monkeypatch.setattr(fonts.asyncio, "create_subprocess_exec", fake_exec)
        assert asyncio.run(resolve_with_fontconfig("JetBrains Mono")) == FONT_STACK

    def test_substituted(self, monkeypatch):
        async def fake_exec(*args, **kwargs):
            return FakeProcess(b"DejaVu Sans Mono")

        monkeypatch.setattr(fonts.asyncio, "create_subprocess_exec", fake_exec)
        with pytest.raises(ResourceError, match="not installed"):
            asyncio.run(resolve_with_fontconfig("JetBrains Mono"))

    def test_fc_match_missing(self, monkeypatch):
        async def fake_exec(*args, **kwargs):
            raise FileNotFoundError("fc-match")

        monkeypatch.setattr(fonts.asyncio, "create_subprocess_exec", fake_exec)
        with pytest.raises(ResourceError, match="fontconfig unavailable"):
            asyncio.run(resolve_with_fontconfig("JetBrains Mono"))

    def test_fc_match_fails(self, monkeypatch):
        async def fake_exec(*args, **kwargs):
            return FakeProcess(b"", returncode=1, stderr=b"boom")

        monkeypatch.setattr(fonts.asyncio, "create_subprocess_exec", fake_exec)
        with pytest.raises(ResourceError, match="boom"):
            asyncio.run(resolve_with_fontconfig("JetBrains Mono"))

    def test_fc_match_timeout_reaps_child(self, monkeypatch):
        proc = FakeProcess(b"JetBrains Mono")

        async def hang():
            await asyncio.sleep(10)

        proc.communicate = hang

        async def fake_exec(*args, **kwargs):
            return proc

        monkeypatch.setattr(fonts.asyncio, "create_subprocess_exec", fake_exec)
        monkeypatch.setattr(fonts, "FC_MATCH_TIMEOUT", 0.01)
        with pytest.raises(ResourceError, match="timed out"):
            asyncio.run(resolve_with_fontconfig("JetBrains Mono"))
        assert proc.killed is True
        assert proc.reaped is True
