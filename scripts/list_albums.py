from __future__ import annotations

import argparse
import os
import sys

import requests
from loguru import logger

# Ensure repo root is importable when executed as a script path (e.g. `python scripts/list_albums.py`)
_REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

from gphoto_albums.authorize import DEFAULT_CALLBACK_TIMEOUT_S
from gphoto_albums.config import DEFAULT_CLIENT_SECRETS, load_client_config
from gphoto_albums.errors import GphotoAuthError
from gphoto_albums.log import setup_logging
from gphoto_albums.photos import PhotosClient, format_albums_table
from gphoto_albums.store import DEFAULT_TOKEN_FILE
from gphoto_albums.token_manager import TokenManager


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="List the albums in your Google Photos library.")
    p.add_argument(
        "--client-secrets",
        default=DEFAULT_CLIENT_SECRETS,
        help=f"Path to OAuth client JSON (default: {DEFAULT_CLIENT_SECRETS}).",
    )
    p.add_argument(
        "--token-file",
        default=DEFAULT_TOKEN_FILE,
        help=f"Where tokens are saved between runs (default: {DEFAULT_TOKEN_FILE}). Do not commit it.",
    )
    p.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_CALLBACK_TIMEOUT_S,
        help="Seconds to wait for the browser authorization; 0 waits forever.",
    )
    p.add_argument(
        "--reauthorize-on-reject",
        action="store_true",
        help="Start a new browser authorization when the saved refresh token is rejected.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return p


def main() -> int:
    args = _build_arg_parser().parse_args()
    setup_logging(args.verbose)

    try:
        config = load_client_config(args.client_secrets)
        manager = TokenManager.from_config(
            config,
            token_file=args.token_file,
            timeout_s=args.timeout,
            reauthorize_on_rejected_refresh=args.reauthorize_on_reject,
        )
        access_token = manager.get_access_token()
    except GphotoAuthError as e:
        logger.error("Authentication failed: {}", e)
        return 1

    try:
        albums = list(PhotosClient(access_token=access_token).list_albums())
    except requests.RequestException as e:
        logger.error("Listing albums failed: {}", e)
        return 1

    print(format_albums_table(albums))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
