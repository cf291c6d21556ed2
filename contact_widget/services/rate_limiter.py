"""
In-memory sliding-window rate limiting for public form submissions.

State lives in one process only. Deployments running several instances
get one independent limit per instance.
"""
import time
import logging
from threading import Lock
from typing import Dict, List, Optional

from fastapi import Request

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


class RateLimiter:
    """Approximate sliding-window limiter keyed by client identifier"""

    def __init__(self, window_seconds: float = 60.0, max_requests: int = 5):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._requests: Dict[str, List[float]] = {}
        self._lock = Lock()

    def is_allowed(self, identifier: str, now: Optional[float] = None) -> bool:
        """
        Record a request for identifier if it is under the limit.

        Every key in the table is pruned on each call. A rejected request
        is not recorded.

        Args:
            identifier: Client identifier (usually an IP address)
            now: Current time in seconds, defaults to time.time()

        Returns:
            True if the request is admitted
        """
        if now is None:
            now = time.time()
        window_start = now - self.window_seconds

        with self._lock:
            for key in list(self._requests):
                valid = [ts for ts in self._requests[key] if ts > window_start]
                if valid:
                    self._requests[key] = valid
                else:
                    del self._requests[key]

            timestamps = self._requests.get(identifier, [])
            if len(timestamps) >= self.max_requests:
                logger.warning(f"Rate limit exceeded for {identifier}")
                return False

            timestamps.append(now)
            self._requests[identifier] = timestamps
            return True

    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._requests)

    def reset(self):
        with self._lock:
            self._requests.clear()


def get_client_identifier(request: Request) -> str:
    """Best-effort client identifier: forwarded IP, real IP, peer address"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP in the chain
        return forwarded.split(",")[0].strip() or UNKNOWN_CLIENT

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT
