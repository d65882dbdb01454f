"""
Command line entry point for signing an add-on.

Usage:
    # Credentials from the environment
    AMO_API_KEY=user:123:45 AMO_API_SECRET=... \\
        python -m amo_signer --id addon@example.com --version 1.0.0 addon.xpi

    # Verbose request tracing, give up after 5 minutes
    amo-sign --id addon@example.com --version 1.0.0 --timeout 300 -v addon.xpi

Exit status is 0 when the add-on was signed and its files downloaded, 1 for
every other outcome.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional

from amo_signer.common.exceptions import ValidationError
from amo_signer.config import load_config
from amo_signer.logging.setup import get_logger, setup_logging
from amo_signer.logging.utilities import log_exception
from amo_signer.signing.client import AMOClient
from amo_signer.signing.progress import PseudoProgress

# Placeholder logger until setup_logging() is called in main()
logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="amo-sign",
        description="Sign an add-on with the addons.mozilla.org signing API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
    AMO_API_KEY / AMO_API_SECRET     credentials when --api-key/--api-secret are omitted
    AMO_API_URL_PREFIX               API base URL
    JSON_LOGS                        true for JSON console logs
        """,
    )

    parser.add_argument("xpi_path", help="Path to the XPI to sign")
    parser.add_argument("--id", dest="id", help="Add-on id (guid)")
    parser.add_argument("--version", dest="version", help="Version being signed")
    parser.add_argument("--api-key", help="API key (JWT issuer)")
    parser.add_argument("--api-secret", help="API secret")
    parser.add_argument("--api-url-prefix", help="Signing API base URL")
    parser.add_argument("--api-proxy", help="HTTP proxy for all API requests")
    parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds to wait for signing before giving up (default: 900)",
    )
    parser.add_argument(
        "--download-dir",
        help="Where to save signed files (default: current directory)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config.yaml with an 'amo:' section",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log redacted API requests and responses",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        help="Also write JSON logs to this directory",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=os.getenv("JSON_LOGS", "false").lower() in ("true", "1", "yes"),
        help="Emit JSON console logs",
    )

    return parser.parse_args(argv)


async def sign_addon_and_exit(
    options: Any,
    *,
    client_class: Callable[..., Any] = AMOClient,
    exit: Callable[[int], Any] = sys.exit,
    throw_error: bool = True,
) -> None:
    """
    Sign one add-on and exit with the outcome.

    Args:
        options: Parsed CLI options (see parse_args)
        client_class: Client factory, replaceable in tests
        exit: Called with 0 on success, 1 otherwise
        throw_error: Re-raise signing exceptions after exiting
    """
    config = load_config(
        getattr(options, "config", None),
        api_key=getattr(options, "api_key", None),
        api_secret=getattr(options, "api_secret", None),
        api_url_prefix=getattr(options, "api_url_prefix", None),
        api_proxy=getattr(options, "api_proxy", None),
        signed_status_check_timeout=getattr(options, "timeout", None),
        download_dir=getattr(options, "download_dir", None),
        debug_logging=bool(getattr(options, "verbose", False)) or None,
    )

    if not config.api_key:
        logger.error("Missing API key; pass --api-key or set AMO_API_KEY")
        exit(1)
        return
    if not config.api_secret:
        logger.error("Missing API secret; pass --api-secret or set AMO_API_SECRET")
        exit(1)
        return

    guid = getattr(options, "id", None)
    version = getattr(options, "version", None)
    if not guid or not version:
        logger.error("Could not determine the add-on id and version; pass --id and --version")
        exit(1)
        return

    xpi_path = getattr(options, "xpi_path", None)
    if not xpi_path or not Path(xpi_path).is_file():
        logger.error(f"XPI file not found: {xpi_path}")
        exit(1)
        return

    try:
        config.validate()
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        exit(1)
        return

    client = client_class(
        config.api_key,
        config.api_secret,
        api_url_prefix=config.api_url_prefix,
        api_proxy=config.api_proxy,
        signed_status_check_interval=config.signed_status_check_interval,
        signed_status_check_timeout=config.signed_status_check_timeout,
        request_timeout=config.request_timeout,
        debug_logging=config.debug_logging,
        download_dir=config.download_dir,
        progress=PseudoProgress(preamble="Validating add-on "),
    )

    try:
        result = await client.sign(guid=guid, version=version, xpi_path=xpi_path)
    except Exception as e:
        log_exception(logger, e, "Signing failed", include_traceback=config.debug_logging)
        exit(1)
        if throw_error:
            raise
        return
    finally:
        await client.close()

    if result.success:
        for path in result.downloaded_files:
            logger.info(f"Downloaded: {path}")
        exit(0)
    else:
        logger.error("Signing was not successful")
        exit(1)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    global logger
    args = parse_args(argv)

    setup_logging(
        name="amo_signer",
        log_dir=args.log_dir,
        json_format=args.json_logs,
        console_level=logging.DEBUG if args.verbose else logging.INFO,
    )

    # Re-get logger after setup to use new handlers
    logger = get_logger(__name__)

    try:
        asyncio.run(sign_addon_and_exit(args, throw_error=False))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(1)


if __name__ == "__main__":
    main()
