"""
api/errors.py

Maps store failures onto a single, generic 500 per operation. Internal error
detail is logged, never returned to the client.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException

from ..storage.repository import StoreReadError

logger = logging.getLogger(__name__)


@contextmanager
def upstream_failure(operation: str) -> Iterator[None]:
    try:
        yield
    except StoreReadError as exc:
        logger.exception("Failed to fetch %s: %s", operation, exc)
        raise HTTPException(status_code=500, detail=f"Failed to fetch {operation}") from exc
