"""Entry point for the ``scoutmaster-api`` command.

Usage:
    scoutmaster-api                    # http://0.0.0.0:8000
    scoutmaster-api --port 9000
    scoutmaster-api --reload           # development auto-reload
"""

import argparse
import logging
from typing import List, Optional

import uvicorn

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Serve the scouting report API")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error", "critical"],
    )
    args = parser.parse_args(argv)

    logger.info("Starting scouting API on http://%s:%s", args.host, args.port)
    uvicorn.run(
        "scoutmaster_api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
