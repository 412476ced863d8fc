"""
Proposal Votes

Implements:
  - TemperatureChoice: the four temperature check answers
  - VotingChoice: Support / Against / Abstain for the binding vote
  - ProposalVote: one weighted vote, immutable once created

Choices arrive as free-form strings from callers and are matched against
the closed vocabulary of the phase they are submitted to. Matching ignores
case, spaces, dashes and underscores, so "Strongly Support",
"STRONGLY_SUPPORT" and "StronglySupport" are the same choice.
"""

import dataclasses
import re
import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from ..config.loader import to_decimal
from ..exceptions import ConfigError


_SEPARATORS = re.compile(r"[\s_\-]+")


def _choice_key(value: str) -> str:
    return _SEPARATORS.sub("", value).casefold()


class _Choice(str, Enum):
    """Closed vote vocabulary; members are matched by label or name."""

    @classmethod
    def parse(cls, value: Union[str, "_Choice"]) -> "_Choice":
        if isinstance(value, cls):
            return value
        if isinstance(value, Enum) or not isinstance(value, str):
            raise ConfigError(f"Invalid {cls.__name__}: {value!r}")
        key = _choice_key(value)
        for member in cls:
            if key in (_choice_key(member.value), _choice_key(member.name)):
                return member
        raise ConfigError(
            f"Invalid {cls.__name__}: {value!r} "
            f"(expected one of {[m.value for m in cls]})"
        )

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        try:
            cls.parse(value)
        except ConfigError:
            return False
        return True

    def __str__(self) -> str:
        return self.value


class TemperatureChoice(_Choice):
    """Temperature check answers, in poll order."""
    STRONGLY_SUPPORT = "Strongly Support"
    SUPPORT_WITH_MINOR_CHANGES = "Support with Minor Changes"
    NEED_MORE_DISCUSSION = "Need More Discussion"
    DO_NOT_SUPPORT = "Do Not Support"


class VotingChoice(_Choice):
    """Binding vote answers. Abstain counts toward quorum only."""
    SUPPORT = "Support"
    AGAINST = "Against"
    ABSTAIN = "Abstain"


SUPPORTIVE_TEMPERATURE = frozenset({
    TemperatureChoice.STRONGLY_SUPPORT,
    TemperatureChoice.SUPPORT_WITH_MINOR_CHANGES,
})


@dataclass(frozen=True)
class ProposalVote:
    """
    A weighted vote cast by a voter.

    Weight is declared by the caller (e.g. a token balance) and is not
    verified here. Delegation metadata is carried along untouched.
    """
    voter: str
    choice: Union[str, _Choice]
    weight: Decimal = Decimal("1")
    timestamp: float = field(default_factory=time.time)
    delegation: Optional[Mapping[str, Any]] = field(default=None, compare=False)

    def __post_init__(self):
        if not self.voter:
            raise ConfigError("Voter identifier is required")
        weight = to_decimal(self.weight, "weight")
        if weight < 0:
            raise ConfigError(f"Vote weight must be non-negative, got {weight}")
        object.__setattr__(self, "weight", weight)
        if self.delegation is not None:
            object.__setattr__(self, "delegation", MappingProxyType(dict(self.delegation)))

    def normalized(self, vocabulary) -> "ProposalVote":
        """Return a copy whose choice is a member of *vocabulary*."""
        choice = vocabulary.parse(self.choice)
        if choice is self.choice:
            return self
        return dataclasses.replace(self, choice=choice)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "voter": self.voter,
            "choice": str(self.choice),
            "weight": str(self.weight),
            "timestamp": self.timestamp,
            "delegation": dict(self.delegation) if self.delegation else None,
        }
