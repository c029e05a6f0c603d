"""Challenge configuration."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .codes import CODE_ALPHABET

# Floor for generated out-of-band codes.
MIN_ENTROPY_BITS = 20


@dataclass(frozen=True)
class MfaConfig:
    """MFA challenge configuration.

    Attributes:
        code_groups: Number of character groups in a generated code.
        code_group_length: Characters per group.
        code_separator: String placed between groups.
        challenge_ttl: Seconds a stored challenge stays valid. ``None``
            keeps it until it is consumed, cancelled or the session ends.
        session_key_prefix: Namespace for secret store keys
            (``"<prefix>.<factor_id>.code"``).
    """

    code_groups: int = 2
    code_group_length: int = 4
    code_separator: str = "-"
    challenge_ttl: int | None = None
    session_key_prefix: str = "auth"

    def __post_init__(self) -> None:
        if self.code_groups < 1 or self.code_group_length < 1:
            raise ValueError("code_groups and code_group_length must be positive")
        if self.challenge_ttl is not None and self.challenge_ttl <= 0:
            raise ValueError("challenge_ttl must be positive or None")
        if not self.session_key_prefix:
            raise ValueError("session_key_prefix must not be empty")
        if self.entropy_bits < MIN_ENTROPY_BITS:
            raise ValueError(
                f"Generated codes carry {self.entropy_bits:.1f} bits of entropy, "
                f"at least {MIN_ENTROPY_BITS} are required"
            )

    @property
    def code_length(self) -> int:
        """Number of random characters in a generated code."""
        return self.code_groups * self.code_group_length

    @property
    def entropy_bits(self) -> float:
        return self.code_length * math.log2(len(CODE_ALPHABET))


__all__: list[str] = ["MfaConfig", "MIN_ENTROPY_BITS"]
