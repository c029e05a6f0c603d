"""One-time code generation and comparison."""

from __future__ import annotations

import secrets
import string

# Characters used in generated codes (exclude ambiguous: 0, O, 1, I)
CODE_ALPHABET = string.ascii_uppercase.replace("O", "").replace(
    "I", ""
) + string.digits.replace("0", "").replace("1", "")


def generate_code(
    groups: int = 2,
    group_length: int = 4,
    separator: str = "-",
) -> str:
    """Generate a grouped, uppercase one-time code.

    Args:
        groups: Number of groups.
        group_length: Characters per group.
        separator: String joining the groups.

    Returns:
        Code such as ``"K7QM-R2XD"``.
    """
    return separator.join(
        "".join(secrets.choice(CODE_ALPHABET) for _ in range(group_length))
        for _ in range(groups)
    )


def normalize_code(value: object) -> str | None:
    """Normalize submitted input: strip whitespace and uppercase.

    Returns ``None`` for anything that is not a string.
    """
    if not isinstance(value, str):
        return None
    return value.strip().upper()


def codes_match(submitted: object, expected: str) -> bool:
    """Constant-time comparison of a submitted code against the stored one.

    The whole token must match after case normalization; prefixes and
    partial codes never match.
    """
    normalized = normalize_code(submitted)
    if not normalized:
        return False
    return secrets.compare_digest(
        normalized.encode("utf-8"), expected.upper().encode("utf-8")
    )


__all__: list[str] = [
    "CODE_ALPHABET",
    "generate_code",
    "normalize_code",
    "codes_match",
]
