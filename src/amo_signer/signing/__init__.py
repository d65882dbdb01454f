"""
Signing lifecycle: upload, status polling and signed file download.

Components:
    - SigningSubmitter: PUTs the XPI and returns the status URL
    - StatusPoller: waits for a terminal status under abort/check timers
    - ArtifactDownloader: streams signed files to disk concurrently
    - AMOClient: facade wiring the above together
"""

from amo_signer.signing.client import AMOClient, sign_addon
from amo_signer.signing.downloader import ArtifactDownloader, get_url_basename
from amo_signer.signing.models import SignedFile, SigningStatus, SignResult
from amo_signer.signing.poller import Decision, StatusPoller, evaluate_status
from amo_signer.signing.progress import PseudoProgress
from amo_signer.signing.submitter import SigningSubmitter
from amo_signer.signing.timers import LoopTimers, TimerService

__all__ = [
    "AMOClient",
    "sign_addon",
    "SigningSubmitter",
    "StatusPoller",
    "ArtifactDownloader",
    "PseudoProgress",
    "Decision",
    "evaluate_status",
    "get_url_basename",
    "SignedFile",
    "SigningStatus",
    "SignResult",
    "LoopTimers",
    "TimerService",
]
