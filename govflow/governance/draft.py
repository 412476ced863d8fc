"""
Proposal Drafts

Defines the content object an external draft producer hands to the
workflow engine: the proposal sections, its optional temperature check
poll, source references and estimated impact. Drafts are frozen so a
workflow can hold one by reference for its whole lifetime.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from ..config.loader import to_decimal
from ..constants import (
    GOVERNANCE_POLL_DURATION_DAYS,
    GOVERNANCE_POLL_PARTICIPATION_THRESHOLD,
)
from ..exceptions import ConfigError
from ..logger import get_logger
from .votes import TemperatureChoice

logger = get_logger(__name__)


TEMPERATURE_CHECK_OPTIONS: Tuple[str, ...] = tuple(c.value for c in TemperatureChoice)


class SectionType(str, Enum):
    """Kind of proposal section."""
    SUMMARY = "summary"
    MOTIVATION = "motivation"
    SPECIFICATION = "specification"
    CONCLUSION = "conclusion"
    OTHER = "other"


@dataclass(frozen=True)
class ProposalSection:
    title: str
    content: str
    type: SectionType = SectionType.OTHER

    def __post_init__(self):
        if not isinstance(self.type, SectionType):
            try:
                object.__setattr__(self, "type", SectionType(self.type))
            except ValueError:
                logger.warning(
                    f"Unknown section type {self.type!r} for '{self.title}', using 'other'"
                )
                object.__setattr__(self, "type", SectionType.OTHER)

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "content": self.content, "type": self.type.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProposalSection":
        return cls(
            title=data.get("title", ""),
            content=data.get("content", ""),
            type=data.get("type", SectionType.OTHER.value),
        )


@dataclass(frozen=True)
class EstimatedImpact:
    """Producer's impact estimate, each score on a 0-1 scale."""
    technical: Decimal = Decimal("0")
    social: Decimal = Decimal("0")
    economic: Decimal = Decimal("0")

    def __post_init__(self):
        for name in ("technical", "social", "economic"):
            value = to_decimal(getattr(self, name), f"estimated_impact.{name}")
            if not Decimal("0") <= value <= Decimal("1"):
                raise ConfigError(f"estimated_impact.{name} must be in [0, 1], got {value}")
            object.__setattr__(self, name, value)

    @property
    def highest(self) -> Decimal:
        return max(self.technical, self.social, self.economic)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "technical": str(self.technical),
            "social": str(self.social),
            "economic": str(self.economic),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EstimatedImpact":
        return cls(
            technical=data.get("technical", 0),
            social=data.get("social", 0),
            economic=data.get("economic", 0),
        )


@dataclass(frozen=True)
class TemperatureCheckPoll:
    """
    Straw poll attached to a draft.

    Fields:
        title:          Poll title
        description:    What voters are asked to gauge
        options:        The four canonical choice labels, in canonical order
        duration_days:  Producer's suggested poll length
        threshold:      Minimum participation threshold (0-1)
    """
    title: str
    description: str = ""
    options: Tuple[str, ...] = TEMPERATURE_CHECK_OPTIONS
    duration_days: float = GOVERNANCE_POLL_DURATION_DAYS
    threshold: Decimal = GOVERNANCE_POLL_PARTICIPATION_THRESHOLD

    def __post_init__(self):
        if not self.title:
            raise ConfigError("Poll title cannot be empty")
        options = tuple(self.options)
        if options != TEMPERATURE_CHECK_OPTIONS:
            raise ConfigError(
                f"Poll options must be {list(TEMPERATURE_CHECK_OPTIONS)}, got {list(options)}"
            )
        object.__setattr__(self, "options", options)
        threshold = to_decimal(self.threshold, "poll.threshold")
        if not Decimal("0") <= threshold <= Decimal("1"):
            raise ConfigError(f"poll.threshold must be in [0, 1], got {threshold}")
        object.__setattr__(self, "threshold", threshold)
        duration = to_decimal(self.duration_days, "poll.duration")
        if duration <= 0:
            raise ConfigError("poll.duration must be > 0")
        object.__setattr__(self, "duration_days", float(duration))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "options": list(self.options),
            "duration": self.duration_days,
            "threshold": str(self.threshold),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TemperatureCheckPoll":
        return cls(
            title=data.get("title", ""),
            description=data.get("description", ""),
            options=tuple(data.get("options", TEMPERATURE_CHECK_OPTIONS)),
            duration_days=data.get("duration", GOVERNANCE_POLL_DURATION_DAYS),
            threshold=data.get("threshold", GOVERNANCE_POLL_PARTICIPATION_THRESHOLD),
        )


def _frozen(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    return frozenset(values or ())


def _timestamp(value: Any) -> float:
    """
    Accept epoch seconds or an ISO-8601 string (producers emit both).

    ISO strings without an offset are read as UTC.
    """
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ConfigError(f"Invalid createdAt timestamp: {value!r}") from None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.timestamp()
    if isinstance(value, bool):
        raise ConfigError(f"Invalid createdAt timestamp: {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid createdAt timestamp: {value!r}") from None


def _section(value: Any) -> "ProposalSection":
    if isinstance(value, ProposalSection):
        return value
    if isinstance(value, Mapping):
        return ProposalSection.from_dict(value)
    raise ConfigError(f"Invalid proposal section: {value!r}")


@dataclass(frozen=True)
class ProposalDraft:
    """
    Externally produced proposal content (read-only to the engine).

    Fields:
        title:               Short title
        author:              Producer or human author
        created_at:          Creation timestamp
        sections:            Ordered proposal sections
        poll:                Optional temperature check poll
        source_discussions:  References to the discussions the draft came from
        tags:                Keyword tags
        estimated_impact:    Technical / social / economic impact scores
    """
    title: str
    author: str
    created_at: float = field(default_factory=time.time)
    sections: Tuple[ProposalSection, ...] = ()
    poll: Optional[TemperatureCheckPoll] = None
    source_discussions: FrozenSet[str] = frozenset()
    tags: FrozenSet[str] = frozenset()
    estimated_impact: EstimatedImpact = field(default_factory=EstimatedImpact)

    def __post_init__(self):
        if not self.title:
            raise ConfigError("Proposal title cannot be empty")
        if not self.author:
            raise ConfigError("Proposal author is required")
        object.__setattr__(self, "created_at", _timestamp(self.created_at))
        if isinstance(self.sections, (str, Mapping)) or not isinstance(self.sections, Iterable):
            raise ConfigError(f"Proposal sections must be a sequence, got {self.sections!r}")
        object.__setattr__(self, "sections", tuple(_section(s) for s in self.sections))
        object.__setattr__(self, "source_discussions", _frozen(self.source_discussions))
        object.__setattr__(self, "tags", _frozen(self.tags))

        poll = self.poll
        if isinstance(poll, Mapping):
            poll = TemperatureCheckPoll.from_dict(poll)
        elif poll is not None and not isinstance(poll, TemperatureCheckPoll):
            raise ConfigError(f"Invalid temperature check poll: {poll!r}")
        object.__setattr__(self, "poll", poll)

        impact = self.estimated_impact
        if impact is None:
            impact = EstimatedImpact()
        elif isinstance(impact, Mapping):
            impact = EstimatedImpact.from_dict(impact)
        elif not isinstance(impact, EstimatedImpact):
            raise ConfigError(f"Invalid estimated impact: {impact!r}")
        object.__setattr__(self, "estimated_impact", impact)

    @property
    def has_poll(self) -> bool:
        return self.poll is not None

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "author": self.author,
            "createdAt": self.created_at,
            "sections": [s.to_dict() for s in self.sections],
            "poll": self.poll.to_dict() if self.poll else None,
            "sourceDiscussions": sorted(self.source_discussions),
            "tags": sorted(self.tags),
            "estimatedImpact": self.estimated_impact.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProposalDraft":
        return cls(
            title=data.get("title", ""),
            author=data.get("author", ""),
            created_at=data.get("createdAt", time.time()),
            sections=data.get("sections") or (),
            poll=data.get("poll") or None,
            source_discussions=data.get("sourceDiscussions", ()),
            tags=data.get("tags", ()),
            estimated_impact=data.get("estimatedImpact"),
        )

    def __repr__(self) -> str:
        return (
            f"<ProposalDraft '{self.title}' by {self.author} "
            f"sections={len(self.sections)} poll={self.has_poll}>"
        )
