"""
Signing client.

AMOClient wires the lifecycle together:

    SigningSubmitter -> StatusPoller -> ArtifactDownloader

all on top of one RequestExecutor (which mints a JWT per request).
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from amo_signer import metrics
from amo_signer.api.auth import DEFAULT_TOKEN_EXPIRES_IN, Authenticator
from amo_signer.api.client import DEFAULT_API_URL_PREFIX, RequestConfig, RequestExecutor
from amo_signer.api.transport import DEFAULT_REQUEST_TIMEOUT, AiohttpTransport
from amo_signer.config import SignerConfig
from amo_signer.logging.context import set_log_context
from amo_signer.logging.setup import generate_request_id
from amo_signer.logging.utilities import LoggedClass
from amo_signer.signing.downloader import ArtifactDownloader
from amo_signer.signing.models import SignResult
from amo_signer.signing.poller import (
    DEFAULT_STATUS_CHECK_INTERVAL,
    DEFAULT_STATUS_CHECK_TIMEOUT,
    StatusPoller,
)
from amo_signer.signing.progress import PseudoProgress
from amo_signer.signing.submitter import SigningSubmitter
from amo_signer.signing.timers import TimerService


class AMOClient(LoggedClass):
    """
    Client for the add-on signing API.

    Usage:
        async with AMOClient(api_key, api_secret) as client:
            result = await client.sign("addon@example.com", "1.0.0", "addon.xpi")
            if result.success:
                print(result.downloaded_files)

    Configuration:
        api_url_prefix: API base (default: https://addons.mozilla.org/api/v3)
        signed_status_check_interval: Seconds between status GETs (default: 1)
        signed_status_check_timeout: Seconds before giving up (default: 900)
        debug_logging: Trace redacted requests/responses to the logger sink
    """

    log_component = "client"

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        *,
        api_url_prefix: str = DEFAULT_API_URL_PREFIX,
        api_proxy: Optional[str] = None,
        signed_status_check_interval: float = DEFAULT_STATUS_CHECK_INTERVAL,
        signed_status_check_timeout: float = DEFAULT_STATUS_CHECK_TIMEOUT,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        token_expires_in: int = DEFAULT_TOKEN_EXPIRES_IN,
        debug_logging: bool = False,
        logger: Optional[Any] = None,
        download_dir: Optional[Union[str, Path]] = None,
        transport: Optional[Any] = None,
        timers: Optional[TimerService] = None,
        progress: Optional[Any] = None,
    ):
        self.api_url_prefix = api_url_prefix
        self.signed_status_check_interval = signed_status_check_interval
        self.signed_status_check_timeout = signed_status_check_timeout
        self.debug_logging = debug_logging

        self.authenticator = Authenticator(api_key, api_secret, expires_in=token_expires_in)
        self.executor = RequestExecutor(
            self.authenticator,
            api_url_prefix=api_url_prefix,
            transport=transport
            if transport is not None
            else AiohttpTransport(timeout_seconds=request_timeout, proxy=api_proxy),
            debug_logging=debug_logging,
            logger=logger,
        )
        self.submitter = SigningSubmitter(self.executor)
        self.downloader = ArtifactDownloader(self.executor, download_dir=download_dir)
        self.poller = StatusPoller(
            self.executor,
            self.downloader,
            status_check_interval=signed_status_check_interval,
            status_check_timeout=signed_status_check_timeout,
            timers=timers,
            progress=progress,
        )
        super().__init__()

    @classmethod
    def from_config(cls, config: SignerConfig, **kwargs: Any) -> "AMOClient":
        """Build a client from a SignerConfig; kwargs override collaborators."""
        return cls(
            config.api_key,
            config.api_secret,
            api_url_prefix=config.api_url_prefix,
            api_proxy=config.api_proxy,
            signed_status_check_interval=config.signed_status_check_interval,
            signed_status_check_timeout=config.signed_status_check_timeout,
            request_timeout=config.request_timeout,
            token_expires_in=config.token_expires_in,
            debug_logging=config.debug_logging,
            download_dir=config.download_dir,
            **kwargs,
        )

    async def __aenter__(self) -> "AMOClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.executor.close()

    @property
    def api_key(self) -> str:
        return self.authenticator.api_key

    # Request helpers

    def debug(self, label: str, value: Any = None) -> None:
        self.executor.debug(label, value)

    def configure_request(self, config: Union[RequestConfig, dict]) -> RequestConfig:
        return self.executor.configure_request(config)

    async def get(self, config, **kwargs):
        return await self.executor.get(config, **kwargs)

    async def put(self, config, **kwargs):
        return await self.executor.put(config, **kwargs)

    async def post(self, config, **kwargs):
        return await self.executor.post(config, **kwargs)

    async def patch(self, config, **kwargs):
        return await self.executor.patch(config, **kwargs)

    async def delete(self, config, **kwargs):
        return await self.executor.delete(config, **kwargs)

    # Signing lifecycle

    async def wait_for_signed_addon(
        self,
        status_url: str,
        *,
        abort_after: Optional[float] = None,
        timers: Optional[TimerService] = None,
    ) -> SignResult:
        return await self.poller.wait_for_signed_addon(
            status_url, abort_after=abort_after, timers=timers
        )

    async def download_signed_files(self, files: Iterable[Any]) -> SignResult:
        return await self.downloader.download(files)

    async def sign(self, guid: str, version: str, xpi_path: str) -> SignResult:
        """
        Upload, wait for signing and download the signed files.

        Returns:
            SignResult; success=False when the version already exists, failed
            validation or needs manual review

        Raises:
            SigningError subclasses for every other failure
        """
        set_log_context(guid=guid, version=version, request_id=generate_request_id())
        self._log(logging.INFO, "Signing add-on", file_path=str(xpi_path))

        try:
            status_url = await self.submitter.submit(guid, version, xpi_path)
            if status_url is None:
                metrics.record_sign_outcome("already_exists")
                return SignResult(success=False)

            result = await self.wait_for_signed_addon(status_url)
        except Exception:
            metrics.record_sign_outcome("error")
            raise

        metrics.record_sign_outcome("success" if result.success else "failure")
        return result


async def sign_addon(
    guid: str,
    version: str,
    xpi_path: str,
    config: SignerConfig,
    *,
    show_progress: bool = False,
) -> SignResult:
    """
    Sign an add-on with a throwaway client.

    All failures surface as exceptions from the awaited coroutine.

    Raises:
        ValidationError: config is missing credentials or has negative timings
    """
    config.validate()
    progress = PseudoProgress(preamble="Validating add-on ") if show_progress else None
    async with AMOClient.from_config(config, progress=progress) as client:
        return await client.sign(guid, version, xpi_path)
