"""Anti-forgery token scraping for the portal login page.

The login page can carry more than one ``__RequestVerificationToken`` input;
some of them hold the name of a JavaScript helper instead of the real token.
All of the heuristic lives here so it can change without touching the login
flow.
"""

from __future__ import annotations

import re
from typing import Iterator

from ..core.constants import MIN_TOKEN_LENGTH
from ..core.exceptions import LoginError

_INPUT_TAG = re.compile(r"<input\b[^>]*>", re.IGNORECASE)
_TOKEN_NAME = re.compile(r"""name\s*=\s*["']__RequestVerificationToken["']""", re.IGNORECASE)
_VALUE = re.compile(r"""(?<![\w-])value\s*=\s*["']([^"']+)["']""", re.IGNORECASE)

_FUNCTION_MARKERS = ("getAntiForgeryToken", "(", ")", " ")


def _candidates(html: str) -> Iterator[str]:
    for tag in _INPUT_TAG.finditer(html):
        text = tag.group(0)
        if not _TOKEN_NAME.search(text):
            continue
        value = _VALUE.search(text)
        if value:
            yield value.group(1)


def looks_like_token(value: str) -> bool:
    if len(value) < MIN_TOKEN_LENGTH:
        return False
    return not any(marker in value for marker in _FUNCTION_MARKERS)


def extract_verification_token(html: str) -> str:
    """Return the first genuine verification token embedded in ``html``."""
    for value in _candidates(html or ""):
        if looks_like_token(value):
            return value
    raise LoginError("Could not find verification token")
