from __future__ import annotations

import argparse
import json
import os
import sys

from loguru import logger

# Ensure repo root is importable when executed as a script path
_REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

from gphoto_albums.authorize import AuthorizationFlow
from gphoto_albums.config import DEFAULT_CLIENT_SECRETS, load_client_config
from gphoto_albums.errors import GphotoAuthError
from gphoto_albums.log import setup_logging


def main() -> int:
    p = argparse.ArgumentParser(description="Get Google OAuth refresh token (local helper).")
    p.add_argument(
        "--client-secrets",
        default=DEFAULT_CLIENT_SECRETS,
        help="Path to OAuth client JSON (web or desktop app).",
    )
    args = p.parse_args()
    setup_logging()

    try:
        config = load_client_config(args.client_secrets)
        credential = AuthorizationFlow(config).run()
    except GphotoAuthError as e:
        logger.error("Authorization failed: {}", e)
        return 1

    if not credential.refresh_token:
        logger.error(
            "No refresh token returned. Revoke previous access and try again: "
            "https://myaccount.google.com/permissions"
        )
        return 1

    out = {
        "refresh_token": credential.refresh_token,
        "client_id": config.client_id,
        "scopes": list(config.scopes),
    }
    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
