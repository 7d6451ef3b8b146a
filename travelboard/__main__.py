"""
travelboard.__main__ — Entry point for ``python -m travelboard``
================================================================

Configures logging and serves the API with uvicorn.  Host and port come
from ``TRAVELBOARD_HOST`` / ``TRAVELBOARD_PORT``.
"""

from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("travelboard")


def main() -> None:
    """Bootstrap and serve the Travelboard API."""
    load_dotenv()
    host = os.getenv("TRAVELBOARD_HOST", "127.0.0.1")
    port = int(os.getenv("TRAVELBOARD_PORT", "8000"))
    logger.info("Starting Travelboard API on %s:%d", host, port)
    uvicorn.run("travelboard.api.main:app", host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
