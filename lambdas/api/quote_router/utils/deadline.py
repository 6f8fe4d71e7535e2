"""
Caps outbound call timeouts to the invocation's remaining time.
"""

from typing import Any, Optional

# Time kept back for building and returning the response.
DEFAULT_SAFETY_BUFFER_MS = 500


class RequestDeadline:
    """Remaining-time view over a Lambda context."""

    def __init__(self, context: Any, safety_buffer_ms: int = DEFAULT_SAFETY_BUFFER_MS):
        self.context = context
        self.safety_buffer_ms = safety_buffer_ms

    def remaining_seconds(self) -> float:
        remaining_ms = self.context.get_remaining_time_in_millis()
        return max(0.0, (remaining_ms - self.safety_buffer_ms) / 1000.0)

    def timeout_for(self, configured_seconds: float) -> float:
        """
        Timeout for the next outbound call.

        Returns:
            The smaller of the configured timeout and the remaining time;
            0 when the invocation has no time left
        """
        return min(configured_seconds, self.remaining_seconds())


def effective_timeout(
    configured_seconds: float, deadline: Optional[RequestDeadline]
) -> float:
    if deadline is None:
        return configured_seconds
    return deadline.timeout_for(configured_seconds)
