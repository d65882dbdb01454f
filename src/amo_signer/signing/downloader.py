"""
Concurrent download of signed artifacts.

Filters the terminal status file list to signed entries, then streams each
one to disk concurrently. The first failure cancels the remaining
downloads and is raised unchanged.
"""

import asyncio
import logging
import posixpath
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Union
from urllib.parse import urlparse

import aiofiles

from amo_signer import metrics
from amo_signer.api.client import RequestExecutor
from amo_signer.common.exceptions import BadResponseError, NoSignedFilesError
from amo_signer.logging.context import set_log_context
from amo_signer.logging.utilities import LoggedClass
from amo_signer.signing.models import SignedFile, SignResult


def get_url_basename(url: str) -> str:
    """Last path segment of a URL, without query string or fragment."""
    return posixpath.basename(urlparse(url).path)


def _open_write_stream(path: str) -> Any:
    return aiofiles.open(path, "wb")


class ArtifactDownloader(LoggedClass):
    """
    Downloads every signed file from a terminal status payload.

    Usage:
        downloader = ArtifactDownloader(executor)
        result = await downloader.download(status.files)
        result.downloaded_files  # local paths, same order as input
    """

    log_component = "downloader"

    def __init__(
        self,
        executor: RequestExecutor,
        download_dir: Optional[Union[str, Path]] = None,
        open_write_stream: Callable[[str], Any] = _open_write_stream,
    ):
        """
        Initialize ArtifactDownloader.

        Args:
            executor: Supplies the transport and auth headers
            download_dir: Destination directory (None = current directory at
                download time)
            open_write_stream: Returns an async context manager with an
                async write(bytes) method (default: aiofiles.open)
        """
        self.executor = executor
        self.download_dir = Path(download_dir) if download_dir is not None else None
        self._open_write_stream = open_write_stream
        super().__init__()

    def destination_for(self, url: str) -> Path:
        base = self.download_dir if self.download_dir is not None else Path.cwd()
        return base / get_url_basename(url)

    async def download(self, files: Iterable[Union[SignedFile, dict]]) -> SignResult:
        """
        Download all signed files.

        Args:
            files: File entries from the status payload

        Returns:
            SignResult(success=True) with local paths in input order

        Raises:
            NoSignedFilesError: No entry is signed
            BadResponseError: A download answered with a non-2xx status
            TransportError: A download stream failed
        """
        entries = [
            entry if isinstance(entry, SignedFile) else SignedFile.model_validate(entry)
            for entry in files or []
        ]
        signed = [entry for entry in entries if entry.is_downloadable]
        set_log_context(stage="download")

        if not signed:
            raise NoSignedFilesError(
                "The XPI was processed but no signed files were found. Check "
                "your manifest and make sure it targets Firefox as an application."
            )

        for entry in entries:
            if not entry.signed:
                self._log(
                    logging.WARNING,
                    "Skipping unsigned file",
                    download_url=entry.download_url,
                )
            elif not entry.download_url:
                self._log(logging.WARNING, "Skipping signed file without a download URL")

        if self.download_dir is not None:
            await asyncio.to_thread(self.download_dir.mkdir, parents=True, exist_ok=True)

        tasks = [
            asyncio.create_task(self._download_file(entry.download_url))
            for entry in signed
        ]
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)

        # Read every finished task's exception, not just the first
        errors = [
            task.exception()
            for task in tasks
            if task in done and not task.cancelled() and task.exception() is not None
        ]
        if errors:
            for other in pending:
                other.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            raise errors[0]

        downloaded = [task.result() for task in tasks]
        self._log(logging.INFO, "Downloaded signed files", file_count=len(downloaded))
        return SignResult(success=True, downloaded_files=downloaded)

    async def _download_file(self, url: str) -> str:
        """Stream one file to disk; the file is done once its writer is closed."""
        destination = self.destination_for(url)
        request = self.executor.configure_request({"url": url})

        try:
            async with self.executor.transport.stream(request.url, request.headers) as response:
                if not 200 <= response.status <= 299:
                    raise BadResponseError(
                        f"Received bad response from the server while downloading "
                        f"{url}\n\nstatus: {response.status}",
                        status_code=response.status,
                        url=url,
                    )
                async with self._open_write_stream(str(destination)) as out:
                    async for chunk in response.iter_chunks():
                        await out.write(chunk)
        except Exception as e:
            metrics.record_download(False)
            self._log_exception(
                e, "Signed file download failed", level=logging.WARNING,
                download_url=url,
            )
            raise

        metrics.record_download(True)
        self._log(
            logging.INFO,
            "Downloaded signed file",
            download_url=url,
            file_path=str(destination),
        )
        return str(destination)
