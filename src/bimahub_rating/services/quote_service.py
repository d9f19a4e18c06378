"""Quote issuance on top of the rating engine.

The engine computes figures; this service stamps them with a quote
identifier and currency. Rating errors are passed through unchanged and
never retried.
"""

import secrets
import string
import threading
import time
from collections.abc import Callable

from beartype import beartype

from ..core.config import Settings, get_settings
from ..core.errors import RatingError
from ..core.logging_utils import get_logger
from ..core.result_types import Ok, Result
from ..models.quote import PremiumBreakdown, QuoteRequest
from .rating.rate_tables import RuleTableRegistry
from .rating.rating_engine import RatingEngine

logger = get_logger(__name__)

_SUFFIX_ALPHABET = string.digits + string.ascii_uppercase
_COUNTER_WIDTH = 4
_RANDOM_WIDTH = 8


@beartype
class QuoteIdGenerator:
    """Generate ``<PREFIX>-<epoch millis>-<suffix>`` quote identifiers.

    The suffix is a per-process counter followed by eight ``secrets``
    characters. Two ids from one generator never share counter and
    timestamp; ids from separate processes would need the same millisecond,
    counter and 36**8 random draw to collide.
    """

    def __init__(
        self,
        prefix: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize generator.

        Args:
            prefix: Quote id prefix, e.g. ``BIMAHUB-Q``
            clock: Seconds since the epoch; injectable for tests
        """
        self._prefix = prefix
        self._clock = clock
        self._counter = 0
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            self._counter = (self._counter + 1) % (36**_COUNTER_WIDTH)
            sequence = self._counter
        timestamp_ms = int(self._clock() * 1000)
        random_part = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_RANDOM_WIDTH))
        suffix = _to_base36(sequence, _COUNTER_WIDTH) + random_part
        return f"{self._prefix}-{timestamp_ms}-{suffix}"


def _to_base36(value: int, width: int) -> str:
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_SUFFIX_ALPHABET[remainder])
    return "".join(reversed(digits)).rjust(width, "0")


@beartype
class QuoteService:
    """Issue identified quotes from rating results."""

    def __init__(
        self,
        engine: RatingEngine,
        settings: Settings | None = None,
        id_generator: QuoteIdGenerator | None = None,
    ) -> None:
        """Initialize quote service.

        Args:
            engine: Rating engine producing the breakdowns
            settings: Settings; defaults to the process settings
            id_generator: Quote id source; defaults to one using the
                configured prefix
        """
        self._engine = engine
        self._settings = settings or get_settings()
        self._id_generator = id_generator or QuoteIdGenerator(
            self._settings.quote_id_prefix
        )

    @property
    def engine(self) -> RatingEngine:
        return self._engine

    def issue_quote(self, request: QuoteRequest) -> Result[PremiumBreakdown, RatingError]:
        """Rate a request and stamp the breakdown with an id and currency."""
        rated = self._engine.rate(request)
        if rated.is_err():
            return rated

        breakdown = rated.unwrap()
        currency = request.currency or self._settings.default_currency
        issued = breakdown.model_copy(
            update={"quote_id": self._id_generator.next_id(), "currency": currency}
        )
        logger.info(
            "Issued quote %s: %s %s (table %s)",
            issued.quote_id,
            issued.final_premium,
            issued.currency,
            issued.rule_table_version,
        )
        return Ok(issued)


@beartype
def create_quote_service(settings: Settings | None = None) -> QuoteService:
    """Wire settings, rule table registry, engine and quote service.

    Also applies ``settings.log_level`` to the package logger.
    """
    settings = settings or get_settings()
    get_logger(level=settings.log_level)
    registry = RuleTableRegistry.from_settings(settings)
    engine = RatingEngine(registry, settings)
    return QuoteService(engine, settings)
