"""Order identifier generation.

Two identifiers are assigned to every order at checkout:

- ``id`` (``YYYY-XXXX-MMDD``): time-derived, probably unique, made
  unique by checking the datastore and perturbing the timestamp.
- ``order_number`` (``YYYY-MMDD-XXXX``): the trailing segment is a
  global sequence derived from the most recently created order.

Both are re-derived from the datastore on every call.  Checks and the
eventual insert are not atomic; the caller relies on the unique
constraints and retries the insert (see ``OrderService.checkout``).
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from typing import TYPE_CHECKING, Callable, Optional

import structlog
from django.utils import timezone

from modules.orders.constants import IDENTIFIER_MAX_ATTEMPTS, SEQUENCE_WIDTH
from modules.orders.exceptions import GenerationExhausted, MalformedSequenceSegment

if TYPE_CHECKING:
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=dt_timezone.utc)


def _high_resolution_tick() -> int:
    return time.perf_counter_ns() % 1000


def parse_sequence(order_number: Optional[str]) -> int:
    """Return the numeric trailing segment of ``YYYY-MMDD-XXXX``.

    Raises:
        MalformedSequenceSegment: ``order_number`` is empty or not in
            the three-segment shape with a numeric last segment.
    """
    if not order_number:
        raise MalformedSequenceSegment("No order number to parse.")
    parts = order_number.split("-")
    if len(parts) != 3 or not parts[2].isdigit():
        raise MalformedSequenceSegment(
            f"Order number {order_number!r} has no numeric sequence segment."
        )
    return int(parts[2])


class OrderIdentifierGenerator:
    """Produces collision-checked order ids and order numbers.

    ``clock`` returns the current local datetime and ``tick`` a
    high-resolution counter; both are injectable for tests.
    """

    def __init__(
        self,
        repository: IOrderRepository,
        clock: Callable[[], datetime] = timezone.localtime,
        tick: Callable[[], int] = _high_resolution_tick,
        max_attempts: int = IDENTIFIER_MAX_ATTEMPTS,
    ) -> None:
        self._repo = repository
        self._clock = clock
        self._tick = tick
        self._max_attempts = max_attempts

    # ------------------------------------------------------------------
    # Order id
    # ------------------------------------------------------------------

    def generate_id(self) -> str:
        """Compose a format-valid id from the current time.

        Not guaranteed unique; use ``generate_unique_id``.
        """
        now = self._clock()
        return self._compose_id(now, _epoch_ms(now))

    def generate_unique_id(self) -> str:
        """Return an id no existing order uses.

        Raises:
            GenerationExhausted: every candidate within ``max_attempts``
                existence checks was taken.
        """
        now = self._clock()
        epoch_ms = _epoch_ms(now)
        candidate = self._compose_id(now, epoch_ms)

        for attempt in range(self._max_attempts):
            if not self._repo.exists_by_id(candidate):
                return candidate
            logger.info("order.id_collision", candidate=candidate, attempt=attempt + 1)
            candidate = self._compose_id(now, epoch_ms + attempt + 1)

        logger.error(
            "order.identifier_exhausted", kind="id", attempts=self._max_attempts
        )
        raise GenerationExhausted(
            f"No free order id after {self._max_attempts} attempts."
        )

    def _compose_id(self, now: datetime, epoch_ms: int) -> str:
        segment = (epoch_ms + self._tick()) % 10000
        return f"{now:%Y}-{segment:04d}-{now:%m%d}"

    # ------------------------------------------------------------------
    # Order number
    # ------------------------------------------------------------------

    def generate_order_number(self) -> str:
        """Return the next free ``YYYY-MMDD-XXXX`` order number.

        The sequence continues from the most recently created order
        regardless of its date; it restarts at 1 when there is no
        previous order or its number cannot be parsed.

        Raises:
            GenerationExhausted: every candidate within ``max_attempts``
                existence checks was taken.
        """
        last_number = self._repo.get_most_recent_order_number()
        try:
            sequence = parse_sequence(last_number) + 1
        except MalformedSequenceSegment:
            if last_number is not None:
                logger.warning("order.sequence_malformed", last_number=last_number)
            sequence = 1

        prefix = f"{self._clock():%Y-%m%d}"
        for attempt in range(self._max_attempts):
            candidate = f"{prefix}-{sequence:0{SEQUENCE_WIDTH}d}"
            if not self._repo.exists_by_order_number(candidate):
                return candidate
            logger.info(
                "order.number_collision", candidate=candidate, attempt=attempt + 1
            )
            sequence += 1

        logger.error(
            "order.identifier_exhausted", kind="order_number", attempts=self._max_attempts
        )
        raise GenerationExhausted(
            f"No free order number after {self._max_attempts} attempts."
        )


def _epoch_ms(now: datetime) -> int:
    return (now - _EPOCH) // timedelta(milliseconds=1)
