"""Typewriter reveal and response read-time arithmetic. All times in ms."""

REVEAL_INTERVAL_MS = 50
MIN_READ_DELAY_MS = 2000
READ_MS_PER_CHAR = 80


def read_delay_ms(text: str) -> int:
    """How long a button response stays up before its action runs."""
    return max(MIN_READ_DELAY_MS, len(text) * READ_MS_PER_CHAR)


def reveal_duration_ms(text: str) -> int:
    return len(text) * REVEAL_INTERVAL_MS


def reveal(text: str, count: int) -> str:
    """The first ``count`` characters of ``text``, clamped to its length."""
    return text[:max(0, min(count, len(text)))]


def reveal_at(text: str, elapsed_ms: int) -> str:
    """Visible text ``elapsed_ms`` after a reveal of ``text`` began."""
    return reveal(text, elapsed_ms // REVEAL_INTERVAL_MS)
