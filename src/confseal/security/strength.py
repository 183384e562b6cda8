"""Advisory password strength scoring. Pure; never blocks encryption."""

import re

from confseal.core.models import PasswordStrength

SYMBOLS = '!@#$%^&*(),.?":{}|<>'

_SYMBOL_RE = re.compile("[" + re.escape(SYMBOLS) + "]")

LEVELS = (
    PasswordStrength(0, "very weak", "#ef4444"),
    PasswordStrength(1, "weak", "#f97316"),
    PasswordStrength(2, "fair", "#eab308"),
    PasswordStrength(3, "strong", "#22c55e"),
    PasswordStrength(4, "very strong", "#10b981"),
)

EMPTY = PasswordStrength(0, "enter a password", "#6b7280")


def score_password(password: str) -> PasswordStrength:
    """
    Score a password from 0 to 4.

    One point each for: length >= 8, length >= 12, both lower and upper case
    letters, an ASCII digit, a symbol from :data:`SYMBOLS`. The sum is capped at 4.
    """
    if not password:
        return EMPTY

    points = 0
    if len(password) >= 8:
        points += 1
    if len(password) >= 12:
        points += 1
    if re.search(r"[a-z]", password) and re.search(r"[A-Z]", password):
        points += 1
    if re.search(r"[0-9]", password):
        points += 1
    if _SYMBOL_RE.search(password):
        points += 1

    return LEVELS[min(points, len(LEVELS) - 1)]
