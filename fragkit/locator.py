"""
Next-fragment selection for FragKit.

Combines PDT-based and SN-based lookup into the policy a playback
pipeline follows when it needs the next fragment of a level: levels that
carry PROGRAM-DATE-TIME are addressed by wall-clock time, which survives
discontinuities without EXT-X-DISCONTINUITY-SEQUENCE, and everything else
(or a PDT miss) falls back to buffer-position lookup.
"""

import logging
from typing import Optional

from .finders import calculate_next_pdt, find_fragment_by_pdt, find_fragment_by_sn
from .models import Fragment, FragmentLookupConfig, LevelDetails

logger = logging.getLogger(__name__)


def find_next_fragment(
    level_details: LevelDetails,
    buffer_end: float,
    frag_previous: Optional[Fragment] = None,
    max_frag_lookup_tolerance: float = 0.25,
) -> Optional[Fragment]:
    """
    Select the next fragment to load from a level.
    
    Args:
        level_details: Details of the level to load from
        buffer_end: End of the contiguous buffered range the playhead is in (seconds)
        frag_previous: The last fragment successfully appended, if any
        max_frag_lookup_tolerance: Lookup tolerance for buffer-position search (seconds)
        
    Returns:
        The fragment to load next, or None if the level is empty or already
        buffered to its end
        
    Example:
        >>> level = parse_media_playlist(playlist_text)
        >>> frag = find_next_fragment(level, buffer_end=12.0)
        >>> print(frag.sn, frag.url)
    """
    fragments = level_details.fragments
    if not fragments:
        logger.debug("Level has no fragments")
        return None
    
    end = level_details.end
    if buffer_end >= end:
        logger.debug(f"Buffer end {buffer_end:.3f}s reached level end {end:.3f}s")
        return None
    
    has_pdt = bool(level_details.program_date_time) or bool(frag_previous and frag_previous.pdt)
    if has_pdt:
        next_pdt = calculate_next_pdt(level_details.start, buffer_end, frag_previous, level_details)
        found = find_fragment_by_pdt(fragments, next_pdt)
        if found is not None:
            logger.debug(f"Found sn {found.sn} by PDT {next_pdt:.0f}")
            return found
        logger.debug(f"No fragment matches PDT {next_pdt:.0f}, falling back to SN lookup")
    
    return find_fragment_by_sn(frag_previous, fragments, buffer_end, end, max_frag_lookup_tolerance)


def find_next_fragment_from_config(
    level_details: LevelDetails,
    buffer_end: float,
    frag_previous: Optional[Fragment] = None,
    config: Optional[FragmentLookupConfig] = None,
) -> Optional[Fragment]:
    """Select the next fragment using a FragmentLookupConfig object."""
    if config is None:
        config = FragmentLookupConfig()
    return find_next_fragment(
        level_details,
        buffer_end,
        frag_previous=frag_previous,
        max_frag_lookup_tolerance=config.max_frag_lookup_tolerance,
    )
