"""Retry policy for resilient API calls.

`RetryPolicy` wraps one logical call in up to `max_retries + 1` attempts.
Each attempt produces an `Outcome`; the policy decides from the failure kind
whether another attempt can help.

## What Gets Retried

| Failure kind | Retried | Why |
|--------------|---------|-----|
| `NETWORK` | ✅ | Connection problems are usually transient |
| `TIMEOUT` | ✅ | Treated as a network sub-case |
| `SERVER` (5xx) | ✅ | Server may recover |
| `CLIENT` (4xx) | ❌ | Same request will be rejected again |
| `AUTH` (401/403) | ❌ | Credential was already refreshed before sending |
| `PARSE` | ❌ | Same payload will fail to decode again |

## Backoff

Delay before attempt *n* (1-indexed, n >= 2) is
`retry_base_delay * 2 ** (n - 2)`. With the default 1000 ms base:
1s, 2s, 4s, ...

## Example

```python
policy = RetryPolicy(max_retries=3, base_delay_ms=1000)


async def attempt(number: int) -> Outcome:
    return await send_once()


outcome = await policy.run(attempt, description="GET /codesystems")
```
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from namaste_client.errors.models import Failure, FailureKind, Outcome

logger = logging.getLogger(__name__)


class RetryPolicy:
    """Bounded retry loop with pure exponential backoff.

    The policy holds no state beyond the attempt counter of the call it is
    running; one instance can serve many calls.

    Args:
        max_retries: Additional attempts after the first (default: 3)
        base_delay_ms: Delay before the first retry, in milliseconds (default: 1000)
        sleep: Awaitable sleep taking seconds; injectable for tests

    Example:
        ```python
        policy = RetryPolicy(max_retries=2, base_delay_ms=500)
        policy.backoff_delay(2)  # 0.5
        policy.backoff_delay(3)  # 1.0
        ```
    """

    RETRYABLE_KINDS: frozenset[FailureKind] = frozenset(
        [FailureKind.NETWORK, FailureKind.TIMEOUT, FailureKind.SERVER]
    )

    def __init__(
        self,
        *,
        max_retries: int = 3,
        base_delay_ms: float = 1000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self._sleep = sleep

    def should_retry(self, failure: Failure) -> bool:
        """Whether a failure kind can be helped by another identical attempt."""
        return failure.kind in self.RETRYABLE_KINDS

    def backoff_delay(self, attempt: int) -> float:
        """Calculate the delay before an attempt.

        Uses formula: base_delay * (2 ** (attempt - 2))

        Args:
            attempt: The attempt about to start (1-indexed, >= 2)

        Returns:
            Delay in seconds
        """
        return self.base_delay_ms * (2 ** (attempt - 2)) / 1000

    async def run(
        self,
        attempt_fn: Callable[[int], Awaitable[Outcome]],
        *,
        description: str = "request",
    ) -> Outcome:
        """Run attempts until success, a terminal failure, or exhaustion.

        Attempts run strictly one after another: attempt n+1 starts only once
        attempt n's failure has been classified.

        Args:
            attempt_fn: Performs one attempt given its 1-indexed number
            description: Used in log messages, e.g. "GET https://..."

        Returns:
            The first Success, the first non-retryable Failure, or the last
            Failure once all attempts are used
        """
        total_attempts = self.max_retries + 1
        attempt = 1

        while True:
            outcome = await attempt_fn(attempt)

            if outcome.ok:
                return outcome

            if not self.should_retry(outcome):
                return outcome

            if attempt >= total_attempts:
                logger.warning(
                    f"{description} failed with {outcome.kind.value} after {attempt} attempt(s), giving up"
                )
                return outcome

            attempt += 1
            delay = self.backoff_delay(attempt)

            logger.warning(
                f"{description} failed with {outcome.kind.value} ({outcome.message}), "
                f"retrying in {delay}s (attempt {attempt - 1}/{self.max_retries})"
            )

            await self._sleep(delay)
