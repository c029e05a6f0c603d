"""Challenge value objects: factor descriptors, render data and stored state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class FieldDefinition:
    """One input the user must fill in to answer a challenge.

    Attributes:
        key: Key the response is submitted under (e.g. ``"verificationCode"``).
        label: Prompt shown next to the input.
    """

    key: str
    label: str


@dataclass(frozen=True)
class FactorDescriptor:
    """Static description of a factor type.

    Defined once per factor class, never per instance.

    Attributes:
        factor_id: Stable identifier used for selection and key namespacing.
        display_name: Human-readable name.
        description: One-line description of how the factor works.
        fields: Ordered input fields the factor expects.
    """

    factor_id: str
    display_name: str
    description: str
    fields: tuple[FieldDefinition, ...] = ()

    def __post_init__(self) -> None:
        if not self.factor_id:
            raise ValueError("factor_id must not be empty")
        keys = [f.key for f in self.fields]
        if len(keys) != len(set(keys)):
            raise ValueError(f"Duplicate field keys in factor {self.factor_id!r}")

    @property
    def field_keys(self) -> tuple[str, ...]:
        return tuple(f.key for f in self.fields)


@dataclass(frozen=True)
class ChallengeRenderData:
    """What the presentation layer needs to build the challenge form.

    Never carries the secret.

    Attributes:
        factor_id: Factor that issued the challenge.
        display_name: Factor display name.
        description: Factor description.
        fields: Input fields to render, in order.
        delivered_to: Masked destination the code was sent to, if any.
    """

    factor_id: str
    display_name: str
    description: str
    fields: tuple[FieldDefinition, ...]
    delivered_to: str | None = None

    @classmethod
    def from_descriptor(
        cls,
        descriptor: FactorDescriptor,
        delivered_to: str | None = None,
    ) -> ChallengeRenderData:
        return cls(
            factor_id=descriptor.factor_id,
            display_name=descriptor.display_name,
            description=descriptor.description,
            fields=descriptor.fields,
            delivered_to=delivered_to,
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChallengeState(BaseModel):
    """Transient record of an issued challenge.

    Lives only in the secret store, one per (session, factor).
    The secret is excluded from ``repr`` so it cannot leak through logs.

    Attributes:
        session_id: Authentication session that owns the challenge.
        factor_id: Factor that issued it.
        secret: Value the response must match.
        created_at: When the challenge was issued (UTC).
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
    factor_id: str
    secret: str = Field(repr=False)
    created_at: datetime = Field(default_factory=_utcnow)


__all__: list[str] = [
    "FieldDefinition",
    "FactorDescriptor",
    "ChallengeRenderData",
    "ChallengeState",
]
