"""Models for drill-internal data structures."""
from dataclasses import dataclass
from enum import Enum


class DrillState(Enum):
    """Lifecycle states of a drill."""
    ACTIVE = "active"  # Accepting attempts while the clock runs
    MEMORIZING = "memorizing"  # Recall challenge: sequence on display
    RECALLING = "recalling"  # Recall challenge: waiting for the reproduction
    FINISHED = "finished"  # Result available
    CANCELLED = "cancelled"  # Abandoned, no result


TERMINAL_STATES = frozenset({DrillState.FINISHED, DrillState.CANCELLED})


@dataclass(frozen=True)
class Challenge:
    """A generated number or digit sequence shown to the user."""
    number: str


@dataclass(frozen=True)
class Attempt:
    """The user's answer to one challenge."""
    challenge: Challenge
    answer: str
    is_correct: bool
    used_fallback: bool = False
