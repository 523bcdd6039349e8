"""
Development entry point for the token relay.

Run with:
    python -m server.main
"""

from __future__ import annotations

import uvicorn
from dotenv import load_dotenv

from config import AppConfig


# ------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------

if __name__ == "__main__":
    load_dotenv()
    config = AppConfig.load_from_env()

    uvicorn.run(
        "server.asgi:app",
        host=config.relay_host,
        port=config.relay_port,
        log_level="info",
        reload=config.is_dev,
    )
