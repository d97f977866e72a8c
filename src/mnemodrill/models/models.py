"""Domain models for practice sessions and user progress."""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, List, Mapping, Optional, Union


class MnemonicSystem(Enum):
    """Number encoding schemes the trainer drills."""
    MAJOR = "Major System"
    DOMINIC = "Dominic System"
    NUMBER_RHYME = "Number Rhyme System"
    NUMBER_SHAPE = "Number Shape System"

    @property
    def slug(self) -> str:
        """Short identifier used in achievement ids."""
        return self.value.lower().removesuffix(" system").replace(" ", "-")


class PracticeMode(Enum):
    """Available drill variants."""
    CONVERSION_DRILL = "Conversion Drill"
    TIMED_CHALLENGE = "Timed Challenge"
    NUMBER_ASSOCIATION = "Number Association"


@dataclass(frozen=True)
class PracticeConfig:
    """Session configuration, fixed once the session starts."""
    time_limit_seconds: int
    digit_count: int


@dataclass(frozen=True)
class AttemptResult:
    """Raw outcome of a drill scored by attempts."""
    correct_count: int
    total_attempts: int


@dataclass(frozen=True)
class RecallResult:
    """Raw outcome of the timed recall challenge."""
    recalled_prefix_length: int
    sequence_length: int


SessionResult = Union[AttemptResult, RecallResult]


@dataclass(frozen=True)
class SessionScore:
    """Normalized session metrics."""
    accuracy: int
    speed: int


@dataclass(frozen=True)
class UserStats:
    """Cumulative statistics for the lifetime of the process.

    Instances are snapshots; the progress store replaces them as a whole
    instead of mutating fields. `completed_practices` is a read-only mapping.
    """
    daily_streak: int = 0
    accuracy: int = 0
    speed: int = 0
    completed_practices: Mapping[MnemonicSystem, FrozenSet[PracticeMode]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    completed_tutorials: FrozenSet[MnemonicSystem] = frozenset()

    def completed_modes(self, system: MnemonicSystem) -> FrozenSet[PracticeMode]:
        """Modes completed at least once for a system."""
        return self.completed_practices.get(system, frozenset())

    @property
    def practiced_systems(self) -> int:
        """Number of systems with at least one completed mode."""
        return sum(1 for modes in self.completed_practices.values() if modes)


@dataclass(frozen=True)
class Achievement:
    """Unlockable achievement; `unlocked` only ever goes from False to True."""
    id: str
    title: str
    description: str
    unlocked: bool = False


@dataclass(frozen=True)
class AchievementProgress:
    """Display state of one achievement."""
    achievement: Achievement
    progress: Optional[int]


@dataclass(frozen=True)
class SessionOutcome:
    """What a store mutation produced."""
    stats: UserStats
    unlocked: List[str]
    score: Optional[SessionScore] = None


@dataclass(frozen=True)
class MnemonicStory:
    """Structured mnemonic for memorizing a number."""
    breakdown: str
    word: str
    story: str
