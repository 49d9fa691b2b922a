import logging
import os
import sys
from datetime import datetime


class TokenTracker:
    """Tracks token usage across all LLM calls made during one command."""

    def __init__(self):
        self.total_prompt_tokens = 0
        self.total_completion_tokens = 0
        self.call_count = 0

    def record(self, prompt_tokens: int, completion_tokens: int):
        self.total_prompt_tokens += prompt_tokens
        self.total_completion_tokens += completion_tokens
        self.call_count += 1

    @property
    def total_tokens(self):
        return self.total_prompt_tokens + self.total_completion_tokens

    def summary(self) -> str:
        return (f"{self.call_count} LLM call(s), "
                f"{self.total_prompt_tokens} prompt + "
                f"{self.total_completion_tokens} completion tokens")


# Shared across LLM clients in the process
token_tracker = TokenTracker()


def setup_logger(log_dir: str = ".dbexplorer/logs") -> logging.Logger:
    """Creates a file logger on the ``dbexplorer`` package logger.
    All verbose output goes here; the console only sees warnings."""
    logger = logging.getLogger("dbexplorer")
    if logger.handlers:
        return logger
    logger.setLevel(logging.DEBUG)

    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"dbexplorer_{timestamp}.log")

    # File handler: captures everything
    fh = logging.FileHandler(log_file, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(fh)

    # Console handler: warnings and errors only
    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(logging.WARNING)
    ch.setFormatter(logging.Formatter("%(levelname)s  %(message)s"))
    logger.addHandler(ch)

    return logger


def print_header(title: str) -> None:
    print(f"\n{title}")
    print("=" * max(40, len(title)))


def print_error(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
