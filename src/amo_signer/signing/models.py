"""
Signing status and result schemas.

Pydantic models for the status payload returned by the signing API and
for the value handed back to callers of sign().
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SignedFile(BaseModel):
    """
    One file entry in a signing status payload.

    Both fields may be missing or null while the job is still running;
    ``download_url`` is only required once the file is actually fetched.
    """

    model_config = ConfigDict(extra="allow")

    signed: Optional[bool] = Field(default=None, description="Whether the file was signed")
    download_url: Optional[str] = Field(default=None, description="Where the file can be fetched")

    @property
    def is_downloadable(self) -> bool:
        return bool(self.signed) and bool(self.download_url)


class SigningStatus(BaseModel):
    """
    Status payload for an uploaded version.

    Missing or null boolean fields count as False and a null ``files`` as
    no files. ``automated_signing`` is None when the server did not send it.

    Example:
        >>> status = SigningStatus.model_validate({
        ...     "processed": True, "valid": True, "reviewed": True,
        ...     "active": True,
        ...     "files": [{"signed": True, "download_url": "https://a/f.xpi"}],
        ... })
        >>> status.can_be_auto_signed
        True
    """

    model_config = ConfigDict(extra="allow")

    active: Optional[bool] = None
    processed: Optional[bool] = None
    valid: Optional[bool] = None
    reviewed: Optional[bool] = None
    automated_signing: Optional[bool] = None
    files: Optional[List[SignedFile]] = None
    validation_url: Optional[str] = None

    @property
    def file_entries(self) -> List[SignedFile]:
        return list(self.files or [])

    @property
    def can_be_auto_signed(self) -> bool:
        """``automated_signing`` when present, else ``active``."""
        if self.automated_signing is not None:
            return self.automated_signing
        return bool(self.active)


class SignResult(BaseModel):
    """
    Outcome of a sign operation.

    ``success=False`` is a normal result (validation failed, version already
    exists, manual review needed), not an error.
    """

    success: bool
    downloaded_files: List[str] = Field(default_factory=list)
