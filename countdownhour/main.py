"""
Entry point — start the Countdown Hour timer service.

Usage:
    python -m countdownhour.main
    python -m countdownhour.main --port 9000
    uvicorn countdownhour.api.app:app --host 127.0.0.1 --port 8765 --reload
"""

import argparse

import uvicorn

from .config import config
from .log import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Countdown Hour timer service")
    parser.add_argument("--host", default=config.api_host, help="Bind address")
    parser.add_argument("--port", type=int, default=config.api_port, help="Bind port")
    args = parser.parse_args()

    setup_logging(config.log_level)
    uvicorn.run(
        "countdownhour.api.app:app",
        host=args.host,
        port=args.port,
        reload=False,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
