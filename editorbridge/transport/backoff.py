"""Exponential backoff for reconnect attempts."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class ReconnectPolicy:
    """Bounded exponential-backoff reconnect policy."""

    max_attempts: int = 20
    initial_delay_seconds: float = 1.0
    max_delay_seconds: float = 300.0
    multiplier: float = 2.0


@dataclass(slots=True)
class Backoff:
    """Attempt counter and current delay for one transport."""

    policy: ReconnectPolicy = field(default_factory=ReconnectPolicy)
    attempts: int = 0
    delay: float = field(init=False)

    def __post_init__(self) -> None:
        self.delay = self.policy.initial_delay_seconds

    def reset(self) -> None:
        self.attempts = 0
        self.delay = self.policy.initial_delay_seconds

    @property
    def exhausted(self) -> bool:
        return self.attempts > self.policy.max_attempts

    def next_delay(self) -> float | None:
        """Count one attempt and return the wait before it, or None once attempts are exhausted."""
        self.attempts += 1
        if self.exhausted:
            return None
        current = self.delay
        self.delay = min(self.delay * self.policy.multiplier, self.policy.max_delay_seconds)
        return current
