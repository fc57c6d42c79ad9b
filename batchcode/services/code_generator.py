"""
Batch code generation.

Codes are 5 characters from A-Z and 0-9, e.g. "TP6YM".
"""
import secrets
import string
import time
from typing import Protocol

import structlog

logger = structlog.get_logger()

BATCH_CODE_LENGTH = 5
ALPHABET = string.ascii_uppercase + string.digits
BASE36_DIGITS = string.digits + string.ascii_uppercase
MAX_ATTEMPTS = 10
FILLER = "0"


class CodeLookup(Protocol):
    async def code_exists(self, code: str) -> bool: ...


def random_code(length: int = BATCH_CODE_LENGTH) -> str:
    """Draw `length` characters uniformly from ALPHABET."""
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def fallback_code(now_ms: int | None = None) -> str:
    """
    Timestamp-derived code used once random attempts are exhausted.

    Last three base-36 digits of the millisecond clock plus two random
    characters, padded with FILLER to BATCH_CODE_LENGTH.
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    timestamp = to_base36(now_ms)[-3:]
    suffix = random_code(2)
    return f"{timestamp}{suffix}"[:BATCH_CODE_LENGTH].ljust(BATCH_CODE_LENGTH, FILLER)


async def generate_unique_code(store: CodeLookup, max_attempts: int = MAX_ATTEMPTS) -> str:
    """
    Generate a code that is not yet in the store.

    The existence check is only a fast path; the store's unique constraint
    still decides at insert time.
    """
    for attempt in range(1, max_attempts + 1):
        candidate = random_code()
        if not await store.code_exists(candidate):
            return candidate
        logger.debug("batch_code_collision", candidate=candidate, attempt=attempt)

    code = fallback_code()
    logger.warning("batch_code_fallback_used", attempts=max_attempts, code=code)
    return code
