from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import Lock


@dataclass
class _Window:
  opened_at: float
  length: float
  attempts: int = 1

  def closes_at(self) -> float:
    return self.opened_at + self.length


@dataclass
class RateLimiter:
  """
  Fixed-window attempt counter keyed by strings such as `auth:login:ip:<addr>`.

  State lives in process memory; the server runs as one process beside its SQLite file.
  """

  clock: Callable[[], float] = time.monotonic
  max_keys: int = 10_000
  _windows: dict[str, _Window] = field(default_factory=dict, init=False, repr=False)
  _lock: Lock = field(default_factory=Lock, init=False, repr=False)

  def hit(self, key: str, *, limit: int, window_seconds: int) -> tuple[bool, int]:
    """Count one attempt for `key`. Returns (allowed, retry_after_seconds)."""
    now = self.clock()
    with self._lock:
      w = self._windows.get(key)
      if w is None or now >= w.closes_at():
        if len(self._windows) >= self.max_keys:
          self._drop_closed(now)
        self._windows[key] = _Window(opened_at=now, length=float(window_seconds))
        return True, 0
      if w.attempts >= limit:
        return False, max(1, int(w.closes_at() - now))
      w.attempts += 1
      return True, 0

  def reset_prefix(self, prefix: str) -> None:
    with self._lock:
      for key in [k for k in self._windows if k.startswith(prefix)]:
        del self._windows[key]

  def _drop_closed(self, now: float) -> None:
    for key in [k for k, w in self._windows.items() if now >= w.closes_at()]:
      del self._windows[key]


limiter = RateLimiter()
