"""Entry point: python -m kairos.dashboard

Usage:
    kairos                          # Default profile from ~/.config/kairos/config.yaml
    kairos --profile cloud          # Named profile
    kairos --server http://...      # Override server URL
    kairos --namespace my-ns        # Override namespace
"""

import argparse
import logging
import os
import sys
from dataclasses import replace

import requests

from kairos_sdk import TemporalError

from ..backend import Backend
from ..config import (
    SERVER_URL_ENV,
    ConfigError,
    get_log_level,
    get_log_path,
    get_profile,
    get_refresh_settings,
    load_config,
)


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Terminal dashboard for Temporal workflows")
    parser.add_argument("--profile", type=str, help="Connection profile from config.yaml")
    parser.add_argument("--server", type=str, help="Temporal HTTP API URL (overrides the profile)")
    parser.add_argument("--namespace", type=str, help="Namespace (overrides the profile)")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    log_path = get_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_path),
        level=getattr(logging, get_log_level(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("kairos.dashboard")
    args = _parse_args(argv)

    if args.server:
        os.environ[SERVER_URL_ENV] = args.server
    try:
        config = load_config()
        profile = get_profile(config, args.profile)
        settings = get_refresh_settings(config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if args.namespace:
        profile = replace(profile, namespace=args.namespace)

    backend = Backend.from_profile(profile)
    try:
        backend.system_info()
    except (TemporalError, requests.RequestException, TimeoutError) as e:
        logger.error("Cannot reach %s: %s", profile.server_url, e)
        print(f"Error: Failed to connect to {profile.server_url}: {e}", file=sys.stderr)
        backend.close()
        sys.exit(1)

    # Imported late so config errors surface without loading Textual
    from .app import KairosDashboard

    try:
        app = KairosDashboard(backend, settings, profile=profile)
        code = app.run()
    except Exception:
        logger.exception("Dashboard crashed")
        raise
    finally:
        backend.close()
    sys.exit(code or 0)


if __name__ == "__main__":
    main()
