import logging
import random
import time
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Raised when all LLM retries are exhausted."""


class LLMClient(ABC):

    def __init__(self, max_retries: int = 3, retry_delay: float = 2.0):
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    # ── Public entry point ──

    def generate_response(self, prompt: str) -> str:
        """Generate a response with automatic retry and exponential backoff.

        Raises :class:`LLMError` after all retries are exhausted.
        """
        last_error: Exception | None = None

        for attempt in range(1, self.max_retries + 1):
            try:
                result = self._generate(prompt)

                if not result or not result.strip():
                    logger.warning(
                        f"[LLM] Empty response on attempt {attempt}/{self.max_retries}")
                    if attempt < self.max_retries:
                        self._backoff(attempt)
                        continue
                    raise LLMError("LLM returned empty response after all retries")

                return result

            except LLMError:
                raise
            except Exception as e:
                last_error = e
                logger.warning(
                    f"[LLM] Error on attempt {attempt}/{self.max_retries}: {e}")
                if attempt < self.max_retries:
                    # Special handling for 429: wait longer
                    self._backoff(attempt, rate_limited="429" in str(e))

        raise LLMError(
            f"LLM failed after {self.max_retries} retries: {last_error}")

    def _backoff(self, attempt: int, rate_limited: bool = False) -> None:
        # Jittered exponential backoff
        wait = self.retry_delay * (2 ** (attempt - 1))
        if rate_limited:
            wait *= 2
            logger.info(f"[LLM] Rate limit detected (429). Backing off for {wait:.1f}s")
        jitter = wait * 0.1 * random.random()
        time.sleep(wait + jitter)

    # ── Subclass hook ──

    @abstractmethod
    def _generate(self, prompt: str) -> str:
        """Synchronous generation of a single completion."""
