"""
Fragment lookup for FragKit.

Locates the next fragment to load for a stream level, either by absolute
wall-clock time (PROGRAM-DATE-TIME) or by buffer position with a lookup
tolerance that absorbs small gaps and floating-point drift at fragment
boundaries. Every function here is pure: inputs are never mutated and no
state is kept between calls.
"""

import logging
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Sequence

from .models import Fragment, LevelDetails
from .utils import binary_search, parse_program_date_time

logger = logging.getLogger(__name__)


class FragmentPosition(IntEnum):
    """Where a candidate fragment lies relative to the buffer end."""
    BEFORE = -1  # starts after the buffer end, look earlier
    MATCH = 0
    AFTER = 1    # already covered by the buffer, look later


def calculate_next_pdt(
    start: float,
    buffer_end: float,
    frag_previous: Optional[Fragment],
    level_details: Optional[LevelDetails],
) -> float:
    """
    Calculate the PDT of the next load position.
    
    Chains from the PDT of the previous fragment when there is one, which
    copes with large PDT gaps following discontinuities. Otherwise projects
    from the level's PROGRAM-DATE-TIME anchor.
    
    Args:
        start: PTS of the first fragment within the level (seconds)
        buffer_end: End of the contiguous buffered range the playhead is in (seconds)
        frag_previous: The last fragment successfully appended, if any
        level_details: Details of the currently playing level
        
    Returns:
        Projected PDT in milliseconds since epoch, or 0 when no PDT is available
        
    Example:
        >>> prev = Fragment(sn=4, start=40.0, duration=10.0, pdt=1705314640000.0)
        >>> calculate_next_pdt(0.0, 50.0, prev, None)
        1705314650000.0
    """
    if frag_previous is not None and frag_previous.pdt:
        return frag_previous.pdt + frag_previous.duration * 1000
    
    if level_details is not None and level_details.program_date_time:
        anchor = parse_program_date_time(level_details.program_date_time)
        if math.isnan(anchor):
            logger.debug(f"Unparseable PROGRAM-DATE-TIME: {level_details.program_date_time!r}")
            return 0
        return buffer_end * 1000 + anchor - start * 1000
    
    return 0


def find_fragment_by_pdt(
    fragments: Optional[Sequence[Fragment]],
    pdt_value: Optional[float],
) -> Optional[Fragment]:
    """
    Find the first fragment whose end PDT exceeds the given PDT.
    
    Args:
        fragments: Candidate fragments, ordered by SN
        pdt_value: Target PDT in milliseconds; 0 or None means no target
        
    Returns:
        The first fragment with end_pdt > pdt_value, or None when the target
        falls outside the fragments' PDT range
    """
    if not fragments or not pdt_value or math.isnan(pdt_value):
        return None
    
    first = fragments[0]
    if not first.pdt or pdt_value < first.pdt:
        return None
    
    last_end_pdt = fragments[-1].end_pdt
    if last_end_pdt is None or pdt_value >= last_end_pdt:
        return None
    
    for frag in fragments:
        end_pdt = frag.end_pdt
        if end_pdt is not None and pdt_value < end_pdt:
            return frag
    return None


def classify(candidate: Fragment, buffer_end: float, max_lookup_tolerance: float) -> FragmentPosition:
    """
    Classify a candidate fragment against the buffer end.
    
    The lookup tolerance is applied to both ends of the candidate. This
    copes with situations like:
    
        buffer_end = 9.991
        frag[0] : [0, 10]
        frag[1] : [10, 20]
    
    where buffer_end lies inside frag[0] but frag[1] is the one to load.
    The tolerance is capped by the candidate's duration (plus its known PTS
    drift) so that very short fragments are never skipped.
    
    Args:
        candidate: Fragment to classify
        buffer_end: End of the buffered range (seconds)
        max_lookup_tolerance: Maximum lookup tolerance (seconds)
        
    Returns:
        FragmentPosition.AFTER if the buffer already covers the candidate,
        FragmentPosition.BEFORE if the candidate starts beyond the buffer end,
        FragmentPosition.MATCH otherwise
    """
    candidate_tolerance = min(
        max_lookup_tolerance,
        candidate.duration + (candidate.delta_pts if candidate.delta_pts else 0),
    )
    if candidate.start + candidate.duration - candidate_tolerance <= buffer_end:
        return FragmentPosition.AFTER
    # A fragment starting at 0 is never BEFORE, whatever sign the tolerance has
    if candidate.start - candidate_tolerance > buffer_end and candidate.start:
        return FragmentPosition.BEFORE
    return FragmentPosition.MATCH


@dataclass(frozen=True)
class ToleranceWindow:
    """Buffer end and lookup tolerance against which fragments are classified."""
    buffer_end: float
    max_lookup_tolerance: float

    def classify(self, candidate: Fragment) -> FragmentPosition:
        """Classify a candidate fragment against this window."""
        return classify(candidate, self.buffer_end, self.max_lookup_tolerance)

    __call__ = classify


def find_fragment_by_sn(
    frag_previous: Optional[Fragment],
    fragments: Sequence[Fragment],
    buffer_end: float,
    end: float,
    max_frag_lookup_tolerance: float,
) -> Optional[Fragment]:
    """
    Find the next fragment by SN continuity or by buffer position.
    
    The fragment following frag_previous is preferred when it still lies
    within tolerance of the buffer end. Otherwise the whole sequence is
    searched with the tolerance predicate, which handles seeks, gaps and
    stale SN guesses after discontinuities.
    
    Args:
        frag_previous: The last fragment successfully appended, if any
        fragments: Candidate fragments, ordered by SN (non-empty)
        buffer_end: End of the contiguous buffered range (seconds)
        end: Computed end time of the stream (seconds)
        max_frag_lookup_tolerance: Lookup tolerance (seconds)
        
    Returns:
        The fragment to load next, or None when buffer_end has reached end
        or no fragment matches
    """
    if buffer_end >= end:
        return None
    
    # Near the end of the stream the tolerance could skip the last fragment
    if buffer_end > end - max_frag_lookup_tolerance:
        max_frag_lookup_tolerance = 0
    
    window = ToleranceWindow(buffer_end, max_frag_lookup_tolerance)
    
    frag_next = None
    if frag_previous is not None:
        next_index = frag_previous.sn - fragments[0].sn + 1
        if 0 <= next_index < len(fragments):
            frag_next = fragments[next_index]
    
    if frag_next is not None and window.classify(frag_next) == FragmentPosition.MATCH:
        logger.debug(f"Continuing sequentially with sn {frag_next.sn}")
        return frag_next
    
    found = binary_search(fragments, window)
    if found is not None:
        logger.debug(f"Found sn {found.sn} for buffer end {buffer_end:.3f}s")
    return found
