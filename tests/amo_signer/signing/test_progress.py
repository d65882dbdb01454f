"""Tests for the pseudo progress indicator."""

import asyncio
import io

import pytest

from amo_signer.signing.progress import PseudoProgress


class FakeTTY(io.StringIO):
    def isatty(self):
        return True


class TestPseudoProgress:
    """Tests for PseudoProgress."""

    @pytest.mark.asyncio
    async def test_animates_on_tty(self):
        out = FakeTTY()
        progress = PseudoProgress(preamble="Validating ", stdout=out, interval=0.001)

        progress.animate()
        await asyncio.sleep(0.02)

        assert progress.running is True
        assert "\rValidating [" in out.getvalue()

        progress.finish()
        await asyncio.sleep(0)

        assert progress.running is False
        assert out.getvalue().endswith("\n")

    @pytest.mark.asyncio
    async def test_finish_cancels_ticker(self):
        progress = PseudoProgress(stdout=FakeTTY(), interval=0.001)

        progress.animate()
        task = progress._task
        progress.finish()
        await asyncio.sleep(0)

        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_non_tty_prints_preamble_once(self):
        out = io.StringIO()
        progress = PseudoProgress(preamble="Validating add-on ", stdout=out)

        progress.animate()
        progress.animate()
        progress.finish()

        assert out.getvalue() == "Validating add-on \n"
        assert progress._task is None

    def test_finish_without_animate_is_noop(self):
        out = io.StringIO()

        PseudoProgress(stdout=out).finish()

        assert out.getvalue() == ""

    def test_bar_bounces(self):
        progress = PseudoProgress(width=3)
        positions = []
        for _ in range(6):
            positions.append(progress._position)
            progress._advance()

        assert positions == [0, 1, 2, 1, 0, 1]
        assert progress.render() == "\r[  ▓]"
