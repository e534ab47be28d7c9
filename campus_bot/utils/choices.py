# Role: Deterministic parsers for prompt answers (yes/no confirmations, fixed choices, e-mail addresses).
# A parser returns the normalized value, or None when the answer should be re-asked.

from __future__ import annotations

import re
from typing import Optional, Sequence

_YES = {"yes", "y", "yeah", "yep", "sure", "ok", "okay", "correct", "confirm", "that's right", "right"}
_NO = {"no", "n", "nope", "nah", "incorrect", "wrong", "not really"}

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def parse_yes_no(text: Optional[str]) -> Optional[bool]:
    t = (text or "").strip().lower().rstrip(".!")
    if t in _YES:
        return True
    if t in _NO:
        return False
    return None


def parse_email(text: Optional[str]) -> Optional[str]:
    t = (text or "").strip()
    return t if _EMAIL_RE.match(t) else None


def match_choice(text: Optional[str], choices: Sequence[str]) -> Optional[str]:
    """
    Match an answer to one of `choices`: by number ("1"), exact title (case-insensitive),
    or a unique choice that contains the answer ("bank" -> "Bank Letter").
    """
    t = (text or "").strip().lower().rstrip(".")
    if not t:
        return None

    t = re.sub(r"^(\d+)[.)]?\s*", r"\1 ", t).strip()
    head = t.split(" ", 1)[0]
    if head.isdigit():
        idx = int(head) - 1
        if 0 <= idx < len(choices):
            return choices[idx]
        return None

    for choice in choices:
        if choice.lower() == t:
            return choice

    partial = [c for c in choices if t in c.lower()]
    return partial[0] if len(partial) == 1 else None
