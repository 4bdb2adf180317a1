"""Command line entry for the business manager API."""

from __future__ import annotations

import argparse
import logging

import uvicorn

from bizmanager.core.config import settings


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def run_server(host: str = "0.0.0.0", port: int = 8080, *, reload: bool = False) -> None:
    uvicorn.run("bizmanager.api.main:app", host=host, port=port, reload=reload, log_config=None)


def main() -> None:
    parser = argparse.ArgumentParser(description="Business Manager API server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args()

    configure_logging(args.log_level)
    run_server(args.host, args.port, reload=args.reload)


if __name__ == "__main__":
    main()
