"""
Retry support for transient GitHub API failures.
"""

import time
import random
import logging
from functools import wraps
from typing import Callable, Type, List, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """
    Backoff policy: ``max_attempts`` calls in total, waiting
    ``base_delay * exponential_base ** attempt`` seconds (capped at
    ``max_delay``) between them. Only ``exceptions`` are retried; any other
    error propagates immediately. ``None`` retries every exception.
    """
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = True
    exceptions: Optional[List[Type[Exception]]] = None

    def __post_init__(self):
        self.max_attempts = max(1, self.max_attempts)

    def is_retryable(self, error: Exception) -> bool:
        return not self.exceptions or isinstance(error, tuple(self.exceptions))

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the zero-based ``attempt`` failed."""
        delay = min(self.base_delay * (self.exponential_base ** attempt), self.max_delay)
        if self.jitter:
            delay *= 0.5 + random.random() * 0.5
        return delay

    def decorate(self, func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(self.max_attempts):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not self.is_retryable(e) or attempt == self.max_attempts - 1:
                        if attempt:
                            logger.error(f"{func.__name__} failed after {attempt + 1} attempts: {e}")
                        raise

                    delay = self.delay_for(attempt)
                    logger.warning(
                        f"{func.__name__} failed (attempt {attempt + 1}/{self.max_attempts}): {e}. "
                        f"Retrying in {delay:.2f}s"
                    )
                    time.sleep(delay)

        return wrapper

