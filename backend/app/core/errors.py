"""Generation failure taxonomy.

Every failure is terminal for its request and carries a stable ``notice`` id
(what the UI shows) plus a message phrase callers can grep for.
"""
from __future__ import annotations

from typing import Iterable

NOTICE_FAILED = "ai-failed"


class GenerationError(Exception):
    """Base class for guard/adapter failures.

    ``attempts`` holds the guard's model calls (kind, text, matches) when the
    failure came out of a guard run.
    """

    notice = NOTICE_FAILED
    status_code = 422
    attempts: tuple = ()


class BindingUnavailable(GenerationError):
    notice = "ai-missing"
    status_code = 503

    def __init__(self, message: str = "AI binding not configured.") -> None:
        super().__init__(message)


class UnparseableResponse(GenerationError):
    def __init__(self, message: str = "AI response could not be parsed.") -> None:
        super().__init__(message)


class ContextTooLarge(GenerationError):
    notice = "ai-too-long"

    def __init__(self, message: str = "Prompt exceeds the model context window even after truncation.") -> None:
        super().__init__(message)


class ForbiddenTermLeak(GenerationError):
    notice = "ai-canon-rewrite"

    def __init__(self, terms: Iterable[str], stage: str = "outline") -> None:
        self.terms = list(terms)
        self.stage = stage
        super().__init__(f"AI {stage} used forbidden canon terms: {', '.join(self.terms)}")


class SeedDrift(GenerationError):
    notice = "ai-seed-drift"

    def __init__(self, stage: str = "outline", hits: int = 0, required: int = 0) -> None:
        self.stage = stage
        self.hits = hits
        self.required = required
        super().__init__(
            f"AI {stage} drifted from seed premise ({hits} of {required} required seed keywords)."
        )


class NonProseShape(GenerationError):
    notice = "ai-format"

    def __init__(self, reason: str = "") -> None:
        self.reason = reason
        detail = f" ({reason})" if reason else ""
        super().__init__(f"AI draft returned outline/script output instead of prose{detail}.")


# Message substrings -> notice, in match order. Lets untyped errors (provider
# exceptions, legacy callers) map to the same notices as typed ones.
_MESSAGE_NOTICES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("binding",), "ai-missing"),
    (("forbidden canon terms",), "ai-canon-rewrite"),
    (("drifted from seed premise",), "ai-seed-drift"),
    (("outline/script output",), "ai-format"),
    (("token", "context", "too long", "length"), "ai-too-long"),
)


def classify_failure(error: BaseException) -> str:
    """Map any exception to a user-facing notice id ("ai-failed" if unknown)."""
    if isinstance(error, GenerationError) and error.notice != NOTICE_FAILED:
        return error.notice
    message = str(error).lower()
    for needles, notice in _MESSAGE_NOTICES:
        if any(needle in message for needle in needles):
            return notice
    return NOTICE_FAILED
