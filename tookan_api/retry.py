"""Shared retry wrapper for the fetch and store layers.

Both layers retry only failures their classifier calls transient, block the
calling flow while backing off, and re-raise the last error once attempts are
exhausted.
"""

import logging
from dataclasses import dataclass
from enum import StrEnum
from time import sleep
from typing import Callable, ParamSpec, TypeVar

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_incrementing,
)
from tenacity.wait import wait_base

from tookan_api.exceptions import TransientStatusError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


class Backoff(StrEnum):
    EXPONENTIAL = "exponential"
    LINEAR = "linear"


def is_transient_fetch_error(error: BaseException) -> bool:
    # SSLError subclasses ConnectionError, so TLS handshake failures land here too.
    return isinstance(
        error, (requests.ConnectionError, requests.Timeout, TransientStatusError)
    )


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int
    backoff_seconds: float
    is_transient: Callable[[BaseException], bool]
    backoff: Backoff = Backoff.EXPONENTIAL

    def wait_strategy(self) -> wait_base:
        if self.backoff is Backoff.LINEAR:
            return wait_incrementing(
                start=self.backoff_seconds, increment=self.backoff_seconds
            )
        return wait_exponential(multiplier=self.backoff_seconds, exp_base=2)


def _sleep(seconds: float) -> None:
    sleep(seconds)


def _log_retry(description: str, max_attempts: int) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            "Retry %s/%s for %s in %.2fs due to: %s",
            retry_state.attempt_number,
            max_attempts,
            description,
            delay,
            str(error)[:120],
        )

    return before_sleep


def call_with_retry(
    policy: RetryPolicy,
    operation: Callable[P, R],
    *args: P.args,
    **kwargs: P.kwargs,
) -> R:
    description = getattr(operation, "__name__", repr(operation))
    retryer = Retrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=policy.wait_strategy(),
        retry=retry_if_exception(policy.is_transient),
        before_sleep=_log_retry(description, policy.max_attempts),
        sleep=_sleep,
        reraise=True,
    )
    return retryer(operation, *args, **kwargs)
