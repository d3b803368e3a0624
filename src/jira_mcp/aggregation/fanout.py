"""Run one upstream call per key concurrently and collect the outcomes.

Every aggregator goes through ``fan_out`` and names its failure policy:

- ``FailurePolicy.ALL_OR_NOTHING``: any failure fails the whole step. All
  calls are awaited first, then the failure of the earliest key is raised.
- ``FailurePolicy.BEST_EFFORT``: failures are logged, recorded as
  ``PartialFailure`` entries and the successful outcomes are kept.

Outcomes are reported in key order, whatever order the calls complete in.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Iterable, List, Tuple, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K")
T = TypeVar("T")


class FailurePolicy(enum.Enum):
    """How a fan-out step reacts to a failed call."""

    ALL_OR_NOTHING = "all_or_nothing"
    BEST_EFFORT = "best_effort"


@dataclass(frozen=True)
class PartialFailure(Generic[K]):
    """A best-effort call that failed and was left out of the result."""

    key: K
    error: Exception

    @property
    def reason(self) -> str:
        return str(self.error) or type(self.error).__name__


@dataclass
class FanOutResult(Generic[K, T]):
    """Successful (key, value) pairs and failures, both in key order."""

    succeeded: List[Tuple[K, T]] = field(default_factory=list)
    failed: List[PartialFailure[K]] = field(default_factory=list)

    @property
    def values(self) -> List[T]:
        return [value for _, value in self.succeeded]


async def fan_out(
    keys: Iterable[K],
    fetch: Callable[[K], Awaitable[T]],
    policy: FailurePolicy,
    label: str = "call",
) -> FanOutResult[K, T]:
    """Issue ``fetch(key)`` for every key without waiting, then await them together.

    Args:
        keys: Keys to fetch; duplicates are fetched twice.
        fetch: Coroutine function producing the value for one key.
        policy: Failure policy for this step.
        label: Short name of the call, used in log messages.

    Raises:
        Exception: Under ALL_OR_NOTHING, the failure of the earliest failed key.
    """
    keys = list(keys)
    outcomes = await asyncio.gather(*(fetch(key) for key in keys), return_exceptions=True)

    result: FanOutResult[K, T] = FanOutResult()
    for key, outcome in zip(keys, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            if policy is FailurePolicy.ALL_OR_NOTHING:
                logger.error("%s failed for %s: %s", label, key, outcome)
                raise outcome
            logger.warning("Skipping %s for %s: %s", label, key, outcome)
            result.failed.append(PartialFailure(key=key, error=outcome))
        else:
            result.succeeded.append((key, outcome))

    logger.debug(
        "%s fan-out finished: %d succeeded, %d failed",
        label, len(result.succeeded), len(result.failed),
    )
    return result
