# src/lambda_logger/redaction.py

"""
Redaction of sensitive substrings from formatted log lines.

A redactor is any callable taking the formatted line and returning it with the
sensitive parts replaced by `REDACTION`. Loggers accept three kinds of
redactor and normalize them once at construction:

    - a literal string, replaced wherever it appears
    - a compiled regular expression, every match replaced
    - a callable, used as is
"""

import re
from collections import deque
from typing import Any, Callable, Deque, Iterable, List, Union

from lambda_logger.exceptions import UnsupportedRedactorError

REDACTION = "--redacted--"

Redactor = Callable[[str], str]
RedactorSpec = Union[str, "re.Pattern[str]", Redactor]


def replace_all(text: str, find: str, replacement: str) -> str:
    if not find:
        return text
    return text.replace(find, replacement)


def redact(text: str, find: str) -> str:
    return replace_all(text, find, REDACTION)


def string_redactor(find: str) -> Redactor:
    """Builds a redactor replacing every exact occurrence of `find`."""
    return lambda text: redact(text, find)


def regex_redactor(find: Union[str, "re.Pattern[str]"]) -> Redactor:
    """Builds a redactor replacing every match of `find`."""
    pattern = re.compile(find)
    return lambda text: pattern.sub(REDACTION, text)


def normalize_redactor(redactor: Any) -> Redactor:
    """
    Turns a configured redactor into a plain `(str) -> str` callable.

    Raises:
        UnsupportedRedactorError: If `redactor` is not a string, a compiled
            pattern or a callable.
    """
    if isinstance(redactor, str):
        return string_redactor(redactor)
    if isinstance(redactor, re.Pattern):
        return regex_redactor(redactor)
    if callable(redactor):
        return redactor
    raise UnsupportedRedactorError(f"Redactor type not supported: {redactor!r}")


def create_redactor_chain(redactors: Iterable[RedactorSpec]) -> List[Redactor]:
    return [normalize_redactor(redactor) for redactor in redactors]


def apply_redactors(redactors: Iterable[Redactor], text: str) -> str:
    for redactor in redactors:
        text = redactor(text)
    return text


# ==============================================================================
# Bearer Token Redaction
# ==============================================================================
#
# A bearer token is easy to spot when it is logged next to its "Bearer "
# prefix, e.g. inside an Authorization header. Handlers often log the bare token
# later on (decoded claims, error messages from an auth client). The redactor
# remembers the tokens it has seen so those follow-up lines are scrubbed too.
#
# The memory is cleared at the start of every wrapped invocation. Loggers used
# without the handler wrapper only keep the most recent tokens.
#
# ==============================================================================

BEARER_PATTERN = re.compile(
    r"Bearer ([A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]*)"
)

# Each remembered token takes two entries: the full match and the bare token.
MAX_REMEMBERED_TOKENS = 5


class BearerRedactor:
    """Stateful redactor for `Bearer <jwt>` tokens and their bare form."""

    def __init__(self, max_tokens: int = MAX_REMEMBERED_TOKENS):
        self._tokens: Deque[str] = deque(maxlen=max_tokens * 2)

    @property
    def tokens(self) -> List[str]:
        return list(self._tokens)

    def reset(self, *_: Any) -> None:
        self._tokens.clear()

    def __call__(self, text: str) -> str:
        if not text or not isinstance(text, str):
            return text

        for match in BEARER_PATTERN.finditer(text):
            if match.group(0) not in self._tokens:
                self._tokens.extend((match.group(0), match.group(1)))

        # Longest first, so a full match is replaced before its bare token.
        for token in sorted(set(self._tokens), key=len, reverse=True):
            if token in text:
                text = redact(text, token)
        return text
