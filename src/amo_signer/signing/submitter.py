"""
Upload of a package version for signing.

Issues the PUT that starts a signing job and hands back the status URL
the poller should watch.
"""

import logging
from typing import Any, BinaryIO, Callable, Optional
from urllib.parse import quote

from amo_signer.api.client import RequestExecutor, format_response
from amo_signer.common.exceptions import BadResponseError, ValidationError
from amo_signer.logging.utilities import LoggedClass, logged_operation

# Version already exists on the server
HTTP_CONFLICT = 409

# Characters of email-style and {uuid}-style add-on ids kept literal in paths
GUID_SAFE_CHARS = "@{}"


def _open_read_stream(path: str) -> BinaryIO:
    return open(path, "rb")


class SigningSubmitter(LoggedClass):
    """
    Uploads an XPI for a guid/version pair.

    submit() returns the status-check URL, or None when the server says the
    version already exists (409). Any other non-2xx status raises.
    """

    log_component = "submitter"

    def __init__(
        self,
        executor: RequestExecutor,
        open_read_stream: Callable[[str], Any] = _open_read_stream,
    ):
        """
        Initialize SigningSubmitter.

        Args:
            executor: Authenticated request executor
            open_read_stream: Opens the XPI for streaming upload
        """
        self.executor = executor
        self._open_read_stream = open_read_stream
        super().__init__()

    @staticmethod
    def version_path(guid: str, version: str) -> str:
        return f"/addons/{quote(guid, safe=GUID_SAFE_CHARS)}/versions/{quote(version, safe='')}/"

    @logged_operation(level=logging.DEBUG, log_start=True)
    async def submit(self, guid: str, version: str, xpi_path: str) -> Optional[str]:
        """
        Upload a version for signing.

        Args:
            guid: Add-on id
            version: Version being uploaded
            xpi_path: Local path of the package

        Returns:
            Status-check URL, or None if the version already exists

        Raises:
            ValidationError: guid, version or xpi_path missing
            BadResponseError: Unexpected status or response without a URL
        """
        if not guid or not version or not xpi_path:
            raise ValidationError("guid, version and xpi_path are required")

        upload = self._open_read_stream(xpi_path)
        try:
            response, body = await self.executor.put(
                {
                    "url": self.version_path(guid, version),
                    "form_data": {"upload": upload},
                },
                throw_on_bad_response=False,
            )
        finally:
            close = getattr(upload, "close", None)
            if callable(close):
                close()

        if response.status == HTTP_CONFLICT:
            self._log(
                logging.WARNING,
                "Version already exists; nothing to sign",
                http_status=response.status,
            )
            return None

        if not 200 <= response.status <= 299:
            raise BadResponseError(
                f"Received bad response from the server while uploading "
                f"{guid} {version}\n\nstatus: {response.status}\n"
                f"response: {format_response(body)}",
                status_code=response.status,
                body=body,
            )

        status_url = body.get("url") if isinstance(body, dict) else None
        if not status_url:
            raise BadResponseError(
                f"Upload response did not include a status URL: {format_response(body)}",
                status_code=response.status,
                body=body,
            )

        self._log(
            logging.INFO,
            "Upload accepted; waiting for signing",
            http_status=response.status,
            status_url=status_url,
        )
        return status_url
