# whalemall/utils.py
"""Shared utilities: logging setup and id/time helpers."""
import os
import logging
import secrets
import time
from datetime import datetime, timezone
from dotenv import load_dotenv

load_dotenv()

_B36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def get_logger(name=__name__):
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, level, logging.INFO)
    )
    return logging.getLogger(name)

logger = get_logger("whalemall")


def _base36(n: int) -> str:
    out = ""
    while n:
        n, r = divmod(n, 36)
        out = _B36[r] + out
    return out or "0"


def generate_id(prefix: str = "") -> str:
    """Opaque unique id, e.g. ``prod-m1x2y3z4-9f0c...``."""
    stamp = _base36(int(time.time() * 1000))
    rand = secrets.token_hex(8)
    return f"{prefix}-{stamp}-{rand}" if prefix else f"{stamp}-{rand}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
