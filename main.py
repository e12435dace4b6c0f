"""
Entry point for the finance tracker core.

Reads `.env` before anything else so these are visible to the constructors:
RECORD_STORE_URL, RECORD_STORE_API_KEY, RECORD_STORE_TIMEOUT_SECONDS,
NOTIFY_FUNCTION_URL, NOTIFY_TIMEOUT_SECONDS, FINANCE_USER_ID and LOG_LEVEL.

`uvicorn main:app` serves the API; `python main.py <report> '<json args>'`
runs one report against the configured record store.
"""
from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger(__name__).info(
    "finance tracker starting record_store=%s notify=%s",
    os.getenv("RECORD_STORE_URL") or "memory",
    "on" if os.getenv("NOTIFY_FUNCTION_URL") else "off",
)

from interface.api import app  # noqa: E402
from interface.cli import main as run_cli  # noqa: E402

if __name__ == "__main__":
    run_cli()
