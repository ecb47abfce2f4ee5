"""
Ordered provider chains

A provider is a callable returning either a result or Unavailable. The first
result wins; exceptions are not caught, so real failures still propagate.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Unavailable:
    """Returned by a provider that cannot serve this request"""
    reason: str


class ChainExhaustedError(RuntimeError):
    """Every provider in the chain reported Unavailable."""

    def __init__(self, attempts: List[Tuple[str, Unavailable]]):
        details = "; ".join(f"{name}: {signal.reason}" for name, signal in attempts)
        super().__init__(f"no provider available ({details})")
        self.attempts = attempts


Provider = Tuple[str, Callable[[], Union[T, Unavailable]]]


def run_chain(providers: Sequence[Provider]) -> T:
    attempts: List[Tuple[str, Unavailable]] = []
    for name, provider in providers:
        result = provider()
        if isinstance(result, Unavailable):
            logger.info("%s unavailable: %s", name, result.reason)
            attempts.append((name, result))
            continue
        return result
    raise ChainExhaustedError(attempts)
