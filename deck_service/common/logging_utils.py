# deck_service/common/logging_utils.py

import logging
import os
from typing import Optional, Tuple

# Environment switches:
#   LOG_LEVEL=DEBUG / INFO / WARNING / ERROR
#   LOG_BODY=1 to include response body previews in request logs
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_BODY = os.getenv("LOG_BODY", "0") == "1"


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Call once at program start (server/main.py)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def preview(data: bytes, max_len: int = 120) -> str:
    """Short body preview limited to max_len bytes."""
    shown = data[:max_len].decode("utf-8", errors="replace")
    if len(data) > max_len:
        shown += f" ... (+{len(data) - max_len} bytes)"
    return shown


def log_request(
    logger: logging.Logger,
    method: str,                  # "GET" / "POST"
    path: str,
    addr: Optional[Tuple[str, int]],
    status: int,
    body: bytes = b"",
    note: str = "",
    level: int = logging.INFO,
) -> None:
    """
    Unified request log.
    addr: (ip, port) of the caller if known, else None.
    body: response body, previewed only when LOG_BODY=1.
    """
    where = f"{addr[0]}:{addr[1]}" if addr else "-"
    base = f"[HTTP][{method}] {where} {path} -> {status} len={len(body)}"
    if note:
        base += f" | {note}"

    if LOG_BODY and body:
        base += f" | body={preview(body)}"

    logger.log(level, base)
