"""Transport-level resilience for the NAMASTE API client.

Modules:
    retry: Bounded retry loop with exponential backoff, driven by failure kind

Example:
    ```python
    from namaste_client.transport import RetryPolicy

    policy = RetryPolicy(max_retries=3, base_delay_ms=1000)
    outcome = await policy.run(send_attempt, description="GET /codesystems")
    ```
"""

from namaste_client.transport.retry import RetryPolicy

__all__ = ["RetryPolicy"]
