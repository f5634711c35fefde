# =============================================================================
# lib/fallback.py - Fallback Chains for Degrading Read Paths
# =============================================================================
# A read against the drifted schema usually has several ways to get the
# same data: a stored procedure, a view, the raw base tables. Instead of
# nesting try/except blocks, each way is a named strategy in a chain:
#
#   chain = FallbackChain("upcoming_lessons", default=[])
#   chain.add("rpc", lambda: fetch_via_rpc())
#   chain.add("bookings_query", lambda: fetch_via_table())
#   result = chain.run()
#   result.value       # first successful value, or a copy of the default
#   result.strategy    # name of the strategy that produced it (or None)
#   result.failures    # one StrategyFailure per strategy that failed
#
# run() never raises for strategy errors. Every failure is logged with its
# database error code so an empty UI list can be told apart from an outage.
# =============================================================================

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Callable, Generic, TypeVar

from lib.supabase_client import error_code

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EmptyResult(Exception):
    """
    Raised by a strategy that ran fine but found nothing usable.

    The chain moves on to the next strategy without logging a warning.
    """


@dataclass
class StrategyFailure:
    """Why one strategy in a chain did not produce a value."""
    strategy: str
    error: BaseException

    @property
    def code(self) -> str | None:
        """Database error code, if the failure came from PostgREST."""
        return error_code(self.error)

    @property
    def is_empty(self) -> bool:
        return isinstance(self.error, EmptyResult)

    def describe(self) -> str:
        code = self.code
        return f"{self.strategy}[{code}]: {self.error}" if code else f"{self.strategy}: {self.error}"


@dataclass
class ChainResult(Generic[T]):
    """Outcome of running a FallbackChain."""
    value: T
    strategy: str | None
    failures: list[StrategyFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """True when some strategy produced the value (not the default)."""
        return self.strategy is not None

    @property
    def degraded(self) -> bool:
        """True when any strategy errored or the default was returned."""
        return not self.succeeded or any(not f.is_empty for f in self.failures)


class FallbackChain(Generic[T]):
    """
    Ordered list of named strategies evaluated until one succeeds.

    Strategies are zero-argument callables. A strategy fails by raising;
    the exception is captured, logged, and the next strategy runs.
    """

    def __init__(self, name: str, default: T):
        self.name = name
        self._default = default
        self._strategies: list[tuple[str, Callable[[], T]]] = []

    def add(self, strategy_name: str, strategy: Callable[[], T]) -> "FallbackChain[T]":
        """Append a strategy; returns self so calls can be chained."""
        self._strategies.append((strategy_name, strategy))
        return self

    @property
    def strategy_names(self) -> list[str]:
        return [name for name, _ in self._strategies]

    def run(self) -> ChainResult[T]:
        """
        Evaluate strategies in order.

        Returns:
            ChainResult with the first successful value, or a deep copy of
            the default when every strategy failed
        """
        failures: list[StrategyFailure] = []

        for strategy_name, strategy in self._strategies:
            try:
                value = strategy()
            except Exception as e:
                failure = StrategyFailure(strategy_name, e)
                failures.append(failure)
                if failure.is_empty:
                    logger.debug(f"{self.name}: strategy '{strategy_name}' found nothing")
                else:
                    logger.warning(f"{self.name}: strategy '{strategy_name}' failed - {failure.describe()}")
                continue

            if failures:
                logger.info(f"{self.name}: served by fallback strategy '{strategy_name}'")
            return ChainResult(value=value, strategy=strategy_name, failures=failures)

        if any(not f.is_empty for f in failures):
            logger.error(
                f"{self.name}: all strategies failed, returning default - "
                + "; ".join(f.describe() for f in failures)
            )
        return ChainResult(value=copy.deepcopy(self._default), strategy=None, failures=failures)
