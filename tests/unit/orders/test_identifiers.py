"""Unit tests for OrderIdentifierGenerator.

Covers:
- Id / order number format.
- Pairwise-distinct ids under concurrent generation.
- Collision retry and exhaustion (exact number of existence checks).
- Sequence continuation from the most recent order number.
- Fallback to sequence 1 for missing or malformed order numbers.
"""

from __future__ import annotations

import logging
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from modules.orders.constants import (
    IDENTIFIER_MAX_ATTEMPTS,
    ORDER_ID_PATTERN,
    ORDER_NUMBER_PATTERN,
)
from modules.orders.exceptions import GenerationExhausted, MalformedSequenceSegment
from modules.orders.identifiers import OrderIdentifierGenerator, parse_sequence
from modules.orders.repositories.interfaces import IOrderRepository

pytestmark = pytest.mark.unit

# 2025-06-01 12:00:00 UTC: epoch milliseconds end in 0000
FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
FIXED_TICK = 7


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_repo(last_number=None) -> MagicMock:
    repo = MagicMock(spec=IOrderRepository)
    repo.exists_by_id.return_value = False
    repo.exists_by_order_number.return_value = False
    repo.get_most_recent_order_number.return_value = last_number
    return repo


def _make_generator(repo, now=FIXED_NOW, tick=FIXED_TICK) -> OrderIdentifierGenerator:
    return OrderIdentifierGenerator(repo, clock=lambda: now, tick=lambda: tick)


class ClaimingRepository:
    """Thread-safe store where a free id is claimed by the check that finds it."""

    def __init__(self) -> None:
        self._ids: set[str] = set()
        self._lock = threading.Lock()

    def exists_by_id(self, candidate: str) -> bool:
        with self._lock:
            if candidate in self._ids:
                return True
            self._ids.add(candidate)
            return False


# ---------------------------------------------------------------------------
# Order id
# ---------------------------------------------------------------------------


class TestGenerateId:
    def test_composes_year_segment_and_month_day(self):
        generator = _make_generator(_make_repo())
        assert generator.generate_id() == "2025-0007-0601"

    def test_segment_wraps_modulo_10000(self):
        now = FIXED_NOW + timedelta(milliseconds=9995)
        generator = _make_generator(_make_repo(), now=now, tick=10)
        assert generator.generate_id() == "2025-0005-0601"

    def test_generate_id_does_not_query_the_store(self):
        repo = _make_repo()
        _make_generator(repo).generate_id()
        repo.exists_by_id.assert_not_called()

    def test_format_holds_for_arbitrary_clocks_and_ticks(self):
        rng = random.Random(20250601)
        for _ in range(500):
            now = datetime(2020, 1, 1, tzinfo=timezone.utc) + timedelta(
                milliseconds=rng.randrange(10**12)
            )
            generator = _make_generator(_make_repo(), now=now, tick=rng.randrange(1000))
            order_id = generator.generate_unique_id()
            assert ORDER_ID_PATTERN.match(order_id), order_id
            assert order_id.startswith(f"{now:%Y}-")
            assert order_id.endswith(f"-{now:%m%d}")


class TestGenerateUniqueId:
    def test_returns_first_candidate_when_free(self):
        repo = _make_repo()
        assert _make_generator(repo).generate_unique_id() == "2025-0007-0601"
        repo.exists_by_id.assert_called_once_with("2025-0007-0601")

    def test_collision_retry_returns_fourth_candidate(self):
        repo = _make_repo()
        repo.exists_by_id.side_effect = [True, True, True, False]

        order_id = _make_generator(repo).generate_unique_id()

        assert order_id == "2025-0010-0601"
        assert repo.exists_by_id.call_count == 4
        checked = [c.args[0] for c in repo.exists_by_id.call_args_list]
        assert checked == [
            "2025-0007-0601",
            "2025-0008-0601",
            "2025-0009-0601",
            "2025-0010-0601",
        ]

    def test_exhaustion_after_exactly_100_checks(self):
        repo = _make_repo()
        repo.exists_by_id.return_value = True

        with pytest.raises(GenerationExhausted):
            _make_generator(repo).generate_unique_id()

        assert repo.exists_by_id.call_count == IDENTIFIER_MAX_ATTEMPTS == 100

    def test_store_errors_propagate_unchanged(self):
        repo = _make_repo()
        repo.exists_by_id.side_effect = ConnectionError("db down")

        with pytest.raises(ConnectionError):
            _make_generator(repo).generate_unique_id()
        assert repo.exists_by_id.call_count == 1

    def test_frozen_clock_still_yields_fresh_ids(self):
        store = ClaimingRepository()
        generator = _make_generator(store)

        ids = [generator.generate_unique_id() for _ in range(60)]

        assert len(set(ids)) == 60

    def test_concurrent_generation_is_pairwise_distinct(self):
        store = ClaimingRepository()
        generator = OrderIdentifierGenerator(store)

        with ThreadPoolExecutor(max_workers=16) as pool:
            ids = list(pool.map(lambda _: generator.generate_unique_id(), range(200)))

        assert len(ids) == 200
        assert len(set(ids)) == 200
        assert all(ORDER_ID_PATTERN.match(order_id) for order_id in ids)


# ---------------------------------------------------------------------------
# Order number
# ---------------------------------------------------------------------------


class TestGenerateOrderNumber:
    def test_first_order_starts_at_0001(self):
        repo = _make_repo(last_number=None)
        assert _make_generator(repo).generate_order_number() == "2025-0601-0001"

    def test_continues_sequence_of_most_recent_order(self):
        repo = _make_repo(last_number="2025-0601-0042")
        assert _make_generator(repo).generate_order_number() == "2025-0601-0043"

    def test_sequence_ignores_date_of_previous_order(self):
        repo = _make_repo(last_number="2025-0601-0042")
        now = datetime(2026, 3, 15, 9, 30, tzinfo=timezone.utc)
        number = _make_generator(repo, now=now).generate_order_number()
        assert number == "2026-0315-0043"

    @pytest.mark.parametrize("last_number", ["not-a-number", "2025-0601", "", None])
    def test_malformed_or_missing_falls_back_to_0001(self, last_number):
        repo = _make_repo(last_number=last_number)
        assert _make_generator(repo).generate_order_number() == "2025-0601-0001"

    def test_malformed_number_is_logged(self, caplog):
        repo = _make_repo(last_number="not-a-number")
        with caplog.at_level(logging.WARNING):
            _make_generator(repo).generate_order_number()
        assert any(
            "order.sequence_malformed" in record.getMessage()
            for record in caplog.records
        )

    def test_collision_increments_sequence(self):
        repo = _make_repo(last_number="2025-0601-0042")
        repo.exists_by_order_number.side_effect = [True, True, False]

        number = _make_generator(repo).generate_order_number()

        assert number == "2025-0601-0045"
        assert repo.exists_by_order_number.call_count == 3

    def test_exhaustion_after_exactly_100_checks(self):
        repo = _make_repo(last_number="2025-0601-0042")
        repo.exists_by_order_number.return_value = True

        with pytest.raises(GenerationExhausted):
            _make_generator(repo).generate_order_number()

        assert repo.exists_by_order_number.call_count == 100
        repo.get_most_recent_order_number.assert_called_once()

    def test_sequence_widens_past_9999(self):
        repo = _make_repo(last_number="2025-0601-9999")
        number = _make_generator(repo).generate_order_number()
        assert number == "2025-0601-10000"
        assert ORDER_NUMBER_PATTERN.match(number)

    def test_format_matches_id_shape(self):
        repo = _make_repo(last_number="2024-1231-0007")
        number = _make_generator(repo).generate_order_number()
        assert ORDER_ID_PATTERN.match(number)


class TestParseSequence:
    def test_parses_trailing_segment(self):
        assert parse_sequence("2025-0601-0042") == 42

    @pytest.mark.parametrize(
        "value", [None, "", "not-a-number", "2025-0601", "2025-0601-00A1", "a-b-c-d"]
    )
    def test_rejects_malformed_values(self, value):
        with pytest.raises(MalformedSequenceSegment):
            parse_sequence(value)
