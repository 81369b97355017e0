"""Username and password rules.

Username:
    - lowercase letters and digits only
    - 5 to 15 characters
    - starts with a letter

Password:
    - 10 to 50 characters drawn from letters, digits and !@#$%^&*-+=
    - at least one digit, one lowercase letter, one uppercase letter and one symbol
    - no run of three ascending, descending or identical characters (case-insensitive)
    - no three consecutive characters of the username, forwards or reversed
"""

import re
import string

PASSWORD_SYMBOLS = "!@#$%^&*-+="

_USERNAME_PATTERN = re.compile(r"[a-z][a-z0-9]{4,14}")
_PASSWORD_PATTERN = re.compile(r"[A-Za-z0-9!@#$%^&*\-+=]{10,50}")
_WINDOW = 3


def validate_username(candidate: str) -> bool:
    """Return True if the candidate is an acceptable username."""
    return _USERNAME_PATTERN.fullmatch(candidate) is not None


def _has_monotone_run(text: str) -> bool:
    """True if three adjacent characters step by +1, -1 or 0 code points."""
    for first, second, third in zip(text, text[1:], text[2:]):
        step = ord(second) - ord(first)
        if step in (-1, 0, 1) and ord(third) - ord(second) == step:
            return True
    return False


def _username_windows(username: str) -> set[str]:
    windows = set()
    for start in range(len(username) - _WINDOW + 1):
        window = username[start : start + _WINDOW]
        windows.add(window)
        windows.add(window[::-1])
    return windows


def validate_password(username: str, candidate: str) -> bool:
    """Return True if the candidate password satisfies every rule for this username."""
    if _PASSWORD_PATTERN.fullmatch(candidate) is None:
        return False

    if not (
        any(c in string.digits for c in candidate)
        and any(c in string.ascii_lowercase for c in candidate)
        and any(c in string.ascii_uppercase for c in candidate)
        and any(c in PASSWORD_SYMBOLS for c in candidate)
    ):
        return False

    lowered = candidate.lower()
    if _has_monotone_run(lowered):
        return False

    return not any(window in lowered for window in _username_windows(username.lower()))
