"""
In-process sliding-window rate limiter, used as a FastAPI dependency.
Per worker only; a multi-worker deployment needs a shared store.
"""
import time
from collections import deque
from typing import Deque, Dict

from fastapi import Request, HTTPException

# {"scope:ip": timestamps of accepted requests inside the window}
_hits: Dict[str, Deque[float]] = {}
# {scope: when idle keys of that scope were last dropped}
_last_sweep: Dict[str, float] = {}


def _sweep(scope: str, window: int, now: float) -> None:
    """Drop keys of ``scope`` with no hit inside the window, at most once per window."""
    if now - _last_sweep.get(scope, float("-inf")) < window:
        return
    _last_sweep[scope] = now
    prefix = f"{scope}:"
    idle = [key for key, hits in _hits.items()
            if key.startswith(prefix) and (not hits or now - hits[-1] >= window)]
    for key in idle:
        del _hits[key]


def rate_limit(requests: int, window: int, scope: str = "default"):
    """
    Example: Depends(rate_limit(requests=10, window=60, scope="payments"))
    """
    def limiter(request: Request) -> bool:
        ip = request.client.host if request.client else "unknown"
        now = time.monotonic()
        _sweep(scope, window, now)

        hits = _hits.setdefault(f"{scope}:{ip}", deque())
        while hits and now - hits[0] >= window:
            hits.popleft()

        if len(hits) >= requests:
            retry_after = max(1, int(window - (now - hits[0])))
            raise HTTPException(
                status_code=429,
                detail=f"Rate limit exceeded. Try again in {retry_after} seconds.",
                headers={"Retry-After": str(retry_after)},
            )

        hits.append(now)
        return True

    return limiter


def reset_rate_limits() -> None:
    _hits.clear()
    _last_sweep.clear()
