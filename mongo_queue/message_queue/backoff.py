"""
Retry Backoff

Delay before a failed record becomes eligible again.
"""


def compute_backoff_ms(
    retry_count: int,
    retry_limit: int,
    backoff_ms: float,
    backoff_coefficient: float,
) -> float:
    """
    Compute the retry delay for a record that has just failed.

    delay = retry_count ** backoff_coefficient * backoff_ms

    With backoff_ms=1000 and the default coefficient of 1.5:
    - Retry 1: 1s
    - Retry 2: ~2.8s
    - Retry 3: ~5.2s
    - Retry 4: 8s

    Args:
        retry_count: Failed attempts including the one just recorded
        retry_limit: Configured retry budget (negative for unlimited)
        backoff_ms: Base delay in milliseconds
        backoff_coefficient: Exponent applied to retry_count

    Returns:
        Delay in milliseconds. Zero once the budget is used up, so the record
        reaches the failure handler on the very next batch.
    """
    if retry_count == retry_limit:
        return 0.0

    return (retry_count ** backoff_coefficient) * backoff_ms
