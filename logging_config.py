"""
Root logging for the dashboard entry points.

run_dashboard.py calls setup_minimal() unless --debug is given; web_server.run()
calls setup() before handing the app to uvicorn. Library modules only ever
ask for named loggers through swap_risk.utils.get_logger.
"""

import logging
import sys

# Loggers that follow the requested level; everything else stays quieter
APP_LOGGERS = ("__main__", "dex", "swap_risk", "web_server")

# Third-party loggers and the level they are held at outside debug mode
THIRD_PARTY_LEVELS = {
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "fastapi": logging.WARNING,
    "web3": logging.WARNING,
    "urllib3": logging.WARNING,
}


def setup(level=logging.INFO):
    """Send dashboard logs to stdout as `HH:MM:SS | LEVEL | message`."""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(
        logging.Formatter(fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S")
    )
    root.addHandler(console)

    for name, floor in THIRD_PARTY_LEVELS.items():
        logging.getLogger(name).setLevel(floor)

    for name in APP_LOGGERS:
        logging.getLogger(name).setLevel(level)


def setup_minimal():
    """CLI default: warnings such as floored amounts and failed swaps only."""
    setup(level=logging.WARNING)


def setup_debug():
    """Every orchestrator transition, RPC failure and API request."""
    setup(level=logging.DEBUG)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
