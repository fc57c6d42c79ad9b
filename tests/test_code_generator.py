"""
Tests for batch code generation
"""
import re

from batchcode.services import code_generator
from batchcode.services.code_generator import (
    BATCH_CODE_LENGTH,
    MAX_ATTEMPTS,
    fallback_code,
    generate_unique_code,
    random_code,
    to_base36,
)

CODE_PATTERN = re.compile(r"^[A-Z0-9]{5}$")


class SetLookup:
    """In-memory stand-in for the store's existence check."""

    def __init__(self, existing=None, always_exists=False):
        self.codes = set(existing or ())
        self.always_exists = always_exists
        self.checks = 0

    async def code_exists(self, code):
        self.checks += 1
        return self.always_exists or code in self.codes


def test_random_code_format():
    for _ in range(1000):
        assert CODE_PATTERN.match(random_code())


async def test_generated_codes_are_unique_against_the_lookup():
    lookup = SetLookup()

    for _ in range(10_000):
        code = await generate_unique_code(lookup)
        assert CODE_PATTERN.match(code)
        assert code not in lookup.codes
        lookup.codes.add(code)

    assert len(lookup.codes) == 10_000


async def test_collision_retries_with_new_candidate(monkeypatch):
    candidates = iter(["AAAAA", "AAAAA", "BBBBB"])
    monkeypatch.setattr(code_generator, "random_code", lambda length=BATCH_CODE_LENGTH: next(candidates))
    lookup = SetLookup(existing={"AAAAA"})

    code = await generate_unique_code(lookup)

    assert code == "BBBBB"
    assert lookup.checks == 3


async def test_fallback_after_max_attempts():
    lookup = SetLookup(always_exists=True)

    code = await generate_unique_code(lookup)

    assert lookup.checks == MAX_ATTEMPTS
    assert CODE_PATTERN.match(code)


def test_fallback_code_uses_timestamp_prefix():
    now_ms = 1_751_900_000_000

    code = fallback_code(now_ms)

    assert len(code) == BATCH_CODE_LENGTH
    assert code[:3] == to_base36(now_ms)[-3:]
    assert CODE_PATTERN.match(code)


def test_fallback_code_pads_short_timestamps():
    code = fallback_code(5)

    assert len(code) == BATCH_CODE_LENGTH
    assert code.startswith("5")
    assert code.endswith("00")


def test_to_base36():
    assert to_base36(0) == "0"
    assert to_base36(35) == "Z"
    assert to_base36(36) == "10"
    assert to_base36(1295) == "ZZ"
