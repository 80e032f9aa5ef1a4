"""
Data models for FragKit.

Defines the core data structures used throughout the package.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Fragment:
    """Represents a media fragment (segment) of a stream level."""
    sn: int
    start: float     # seconds, media timeline
    duration: float  # seconds
    pdt: Optional[float] = None        # ms since epoch
    delta_pts: Optional[float] = None  # seconds of known PTS drift
    cc: int = 0
    url: Optional[str] = None

    @property
    def end(self) -> float:
        return self.start + self.duration

    @property
    def end_pdt(self) -> Optional[float]:
        """Wall-clock end of the fragment in ms, or None without a PDT."""
        if self.pdt is None:
            return None
        return self.pdt + self.duration * 1000


@dataclass
class LevelDetails:
    """Parsed metadata for one quality level of a stream."""
    fragments: List[Fragment] = field(default_factory=list)
    program_date_time: Optional[str] = None  # ISO 8601 anchor of the first fragment
    start_sn: int = 0
    target_duration: float = 0.0
    live: bool = True
    url: Optional[str] = None

    @property
    def end_sn(self) -> int:
        if not self.fragments:
            return self.start_sn
        return self.fragments[-1].sn

    @property
    def start(self) -> float:
        return self.fragments[0].start if self.fragments else 0.0

    @property
    def end(self) -> float:
        return self.fragments[-1].end if self.fragments else 0.0

    @property
    def total_duration(self) -> float:
        return sum(frag.duration for frag in self.fragments)


@dataclass
class FragmentLookupConfig:
    """Configuration for fragment lookup operations."""
    max_frag_lookup_tolerance: float = 0.25  # seconds

    def __post_init__(self):
        if self.max_frag_lookup_tolerance < 0:
            raise ValueError(
                f"max_frag_lookup_tolerance must be >= 0, got {self.max_frag_lookup_tolerance}"
            )
