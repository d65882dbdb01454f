"""
Signing status poller.

Repeatedly GETs a status URL until the signing job reaches a terminal
state, under two timers:

- abort timer: absolute deadline for the whole poll
- status-check timer: spacing between consecutive GETs

Only one GET is in flight at a time. Whichever path resolves the poll
first (terminal status, request failure, abort) releases every timer and
task the poll owns before returning.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from pydantic import ValidationError as SchemaValidationError

from amo_signer import metrics
from amo_signer.api.client import RequestExecutor, format_response
from amo_signer.common.exceptions import BadResponseError, SigningTimeoutError
from amo_signer.logging.context import set_log_context
from amo_signer.logging.utilities import LoggedClass
from amo_signer.signing.downloader import ArtifactDownloader
from amo_signer.signing.models import SignedFile, SigningStatus, SignResult
from amo_signer.signing.timers import LoopTimers, TimerService

DEFAULT_STATUS_CHECK_INTERVAL = 1.0  # seconds between GETs
DEFAULT_STATUS_CHECK_TIMEOUT = 900.0  # 15 minutes


class Decision(str, Enum):
    """Result of evaluating one status payload."""

    CONTINUE = "continue"
    SUCCESS = "success"
    FAILURE = "failure"


def evaluate_status(status: SigningStatus) -> Decision:
    """
    Apply the signing decision table (first match wins).

    1. processed, not valid                          -> FAILURE
    2. processed, valid, not reviewed                -> CONTINUE
    3. processed, valid, reviewed, no files          -> CONTINUE
    4. processed, valid, reviewed, files             -> SUCCESS if auto-signable
                                                        else FAILURE
    5. not processed                                 -> CONTINUE
    """
    if not status.processed:
        return Decision.CONTINUE
    if not status.valid:
        return Decision.FAILURE
    if not status.reviewed:
        # Validated, but the version object has not been saved yet
        return Decision.CONTINUE
    if not status.files:
        # Signed files not materialized yet
        return Decision.CONTINUE
    if not status.can_be_auto_signed:
        return Decision.FAILURE
    return Decision.SUCCESS


@dataclass
class PollState:
    """Resources owned by one in-flight poll."""

    status_url: str
    started_at: float = field(default_factory=time.monotonic)
    abort_handle: Any = None
    check_handle: Any = None
    check_task: Optional[asyncio.Task] = None
    checks: int = 0


@dataclass
class _Terminal:
    success: bool
    files: List[SignedFile] = field(default_factory=list)


class StatusPoller(LoggedClass):
    """
    Waits for a signing job to finish and downloads the signed files.

    Usage:
        poller = StatusPoller(executor, downloader)
        result = await poller.wait_for_signed_addon(status_url)
    """

    log_component = "poller"

    def __init__(
        self,
        executor: RequestExecutor,
        downloader: ArtifactDownloader,
        status_check_interval: float = DEFAULT_STATUS_CHECK_INTERVAL,
        status_check_timeout: float = DEFAULT_STATUS_CHECK_TIMEOUT,
        timers: Optional[TimerService] = None,
        progress: Optional[Any] = None,
    ):
        """
        Initialize StatusPoller.

        Args:
            executor: Authenticated request executor
            downloader: Fetches signed files on success
            status_check_interval: Seconds between consecutive GETs
            status_check_timeout: Default deadline for a whole poll, seconds
            timers: Timer service (default: asyncio loop timers)
            progress: Optional indicator with animate()/finish()
        """
        self.executor = executor
        self.downloader = downloader
        self.status_check_interval = status_check_interval
        self.status_check_timeout = status_check_timeout
        self.timers: TimerService = timers if timers is not None else LoopTimers()
        self.progress = progress
        super().__init__()

    def _deadline(self, abort_after: Optional[float]) -> float:
        if abort_after is None:
            return self.status_check_timeout
        if self.status_check_timeout is None:
            return abort_after
        return min(abort_after, self.status_check_timeout)

    async def wait_for_signed_addon(
        self,
        status_url: str,
        *,
        abort_after: Optional[float] = None,
        timers: Optional[TimerService] = None,
    ) -> SignResult:
        """
        Poll status_url until a terminal state, then download on success.

        Args:
            status_url: URL returned by the upload
            abort_after: Deadline in seconds (default: status_check_timeout)
            timers: Timer service override for this poll

        Returns:
            SignResult; success=False when validation failed or the
            version cannot be signed automatically

        Raises:
            SigningTimeoutError: Deadline elapsed first
            BadResponseError, TransportError: A status request failed
        """
        terminal = await self._poll(status_url, self._deadline(abort_after), timers or self.timers)
        if not terminal.success:
            return SignResult(success=False)
        return await self.downloader.download(terminal.files)

    async def _poll(
        self, status_url: str, deadline: float, timers: TimerService
    ) -> _Terminal:
        loop = asyncio.get_running_loop()
        outcome: asyncio.Future = loop.create_future()
        state = PollState(status_url=status_url)
        set_log_context(stage="poll")

        def resolve(value: Any = None, error: Optional[BaseException] = None) -> None:
            if outcome.done():
                return
            if error is not None:
                outcome.set_exception(error)
            else:
                outcome.set_result(value)

        def on_abort() -> None:
            state.abort_handle = None
            if state.check_handle is not None:
                timers.cancel(state.check_handle)
                state.check_handle = None
            resolve(
                error=SigningTimeoutError(
                    "Signing took too long to complete; "
                    f"gave up after {deadline}s waiting on {status_url}",
                    context={"status_url": status_url, "checks": state.checks},
                )
            )

        def schedule_check(delay: float) -> None:
            state.check_handle = timers.after(delay, start_check)

        def start_check() -> None:
            state.check_handle = None
            if outcome.done():
                return
            state.check_task = loop.create_task(check())

        async def check() -> None:
            try:
                terminal = await self._check_status(state)
            except Exception as e:
                resolve(error=e)
                return
            if outcome.done():
                return
            if terminal is None:
                schedule_check(self.status_check_interval)
            else:
                resolve(terminal)

        if self.progress is not None:
            self.progress.animate()

        state.abort_handle = timers.after(deadline, on_abort)
        schedule_check(0)

        try:
            return await outcome
        finally:
            self._release(state, timers)
            if self.progress is not None:
                self.progress.finish()
            metrics.observe_poll_duration(time.monotonic() - state.started_at)

    def _release(self, state: PollState, timers: TimerService) -> None:
        """Cancel the abort timer, then the status-check timer, then any in-flight GET."""
        if state.abort_handle is not None:
            timers.cancel(state.abort_handle)
            state.abort_handle = None
        if state.check_handle is not None:
            timers.cancel(state.check_handle)
            state.check_handle = None
        task = state.check_task
        if task is not None and not task.done():
            task.cancel()
        state.check_task = None

    async def _check_status(self, state: PollState) -> Optional[_Terminal]:
        """Issue one GET and evaluate it. None means keep polling."""
        state.checks += 1
        response, body = await self.executor.get({"url": state.status_url})

        try:
            if not isinstance(body, dict):
                raise TypeError("status body is not a JSON object")
            status = SigningStatus.model_validate(body)
        except (TypeError, SchemaValidationError) as e:
            raise BadResponseError(
                f"Unexpected signing status response: {format_response(body)}",
                status_code=response.status,
                url=state.status_url,
                body=body,
            ) from e

        decision = evaluate_status(status)
        metrics.record_status_check(decision.value)
        self._log(
            logging.DEBUG,
            "Signing status checked",
            status_url=state.status_url,
            decision=decision.value,
            check_count=state.checks,
        )

        if decision is Decision.CONTINUE:
            return None

        if decision is Decision.SUCCESS:
            self._log(
                logging.INFO,
                "Add-on passed validation and was signed",
                file_count=len(status.file_entries),
            )
            return _Terminal(success=True, files=status.file_entries)

        if not status.valid:
            self._log(
                logging.ERROR,
                "Add-on failed validation",
                validation_url=status.validation_url,
            )
        else:
            self._log(
                logging.WARNING,
                "Add-on passed validation but could not be signed automatically; "
                "it will be signed after manual review",
                validation_url=status.validation_url,
            )
        return _Terminal(success=False)
