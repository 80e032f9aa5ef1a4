"""
M3U8 media playlist parsing for FragKit.

Builds LevelDetails and their fragment sequence from HLS media playlists,
including PROGRAM-DATE-TIME anchoring and discontinuity counting.
"""

import logging
import math
from dataclasses import replace
from typing import List, Optional
from urllib.parse import urljoin

import requests

from ..models import Fragment, LevelDetails
from ..utils import format_program_date_time, parse_program_date_time

logger = logging.getLogger(__name__)


class PlaylistLoadError(Exception):
    """Raised when a media playlist cannot be fetched or parsed."""


def _tag_value(line: str) -> str:
    return line.split(':', 1)[1].strip()


def _backfill_pdt(fragments: List[Fragment]) -> List[Fragment]:
    """Give fragments preceding the first PROGRAM-DATE-TIME tag a PDT of their own."""
    first_dated = next((i for i, frag in enumerate(fragments) if frag.pdt is not None), None)
    if not first_dated:
        return fragments
    
    filled = list(fragments)
    for i in range(first_dated - 1, -1, -1):
        pdt = filled[i + 1].pdt - filled[i].duration * 1000
        filled[i] = replace(filled[i], pdt=pdt)
    return filled


def parse_media_playlist(content: str, url: Optional[str] = None) -> LevelDetails:
    """
    Parse an HLS media playlist into LevelDetails.
    
    Handles:
    - EXT-X-MEDIA-SEQUENCE: SN of the first fragment
    - EXT-X-TARGETDURATION: Target fragment duration
    - EXTINF: Fragment durations
    - EXT-X-PROGRAM-DATE-TIME: Wall-clock time of the next fragment
    - EXT-X-DISCONTINUITY: Discontinuity counter of following fragments
    - EXT-X-ENDLIST: Marks the level as VOD
    
    Fragments without their own PROGRAM-DATE-TIME get one extrapolated
    from their neighbours once any fragment in the playlist is dated.
    
    Args:
        content: Playlist text
        url: Playlist URL, used to resolve relative fragment URIs
        
    Returns:
        LevelDetails with fragments ordered by SN
        
    Raises:
        ValueError: If content is not an M3U8 playlist
        
    Example:
        >>> details = parse_media_playlist("#EXTM3U\\n#EXTINF:10,\\nseg0.ts\\n#EXT-X-ENDLIST")
        >>> details.fragments[0].duration, details.live
        (10.0, False)
    """
    lines = [line.strip() for line in content.splitlines()]
    lines = [line for line in lines if line]
    if not lines or not lines[0].startswith('#EXTM3U'):
        raise ValueError("Content is not an M3U8 playlist (missing #EXTM3U header)")
    
    details = LevelDetails(url=url)
    fragments: List[Fragment] = []
    program_date_time = None
    first_pdt_index = None
    cc = 0
    position = 0.0
    duration = None
    pdt = None
    
    for line in lines[1:]:
        if line.startswith('#EXT-X-MEDIA-SEQUENCE:'):
            try:
                details.start_sn = int(_tag_value(line))
                logger.debug(f"Found MEDIA-SEQUENCE: {details.start_sn}")
            except ValueError:
                logger.warning(f"Ignoring invalid MEDIA-SEQUENCE: {line}")
        
        elif line.startswith('#EXT-X-TARGETDURATION:'):
            try:
                details.target_duration = float(_tag_value(line))
            except ValueError:
                logger.warning(f"Ignoring invalid TARGETDURATION: {line}")
        
        elif line.startswith('#EXTINF:'):
            # Extract duration from #EXTINF:5.005, format
            duration_str = _tag_value(line).split(',')[0].strip()
            try:
                duration = float(duration_str)
            except ValueError:
                logger.warning(f"Ignoring invalid EXTINF duration: {duration_str}")
        
        elif line.startswith('#EXT-X-PROGRAM-DATE-TIME:'):
            value = _tag_value(line)
            parsed = parse_program_date_time(value)
            if math.isnan(parsed):
                logger.warning(f"Ignoring invalid PROGRAM-DATE-TIME: {value}")
            else:
                pdt = parsed
                if program_date_time is None:
                    program_date_time = value
                    first_pdt_index = len(fragments)
                logger.debug(f"Found PROGRAM-DATE-TIME: {value}")
        
        elif line.startswith('#EXT-X-DISCONTINUITY') and not line.startswith('#EXT-X-DISCONTINUITY-SEQUENCE'):
            cc += 1
        
        elif line.startswith('#EXT-X-ENDLIST'):
            details.live = False
        
        elif not line.startswith('#'):
            if duration is None:
                logger.warning(f"Fragment without EXTINF duration: {line}")
                duration = 0.0
            if pdt is None and fragments and fragments[-1].pdt is not None:
                pdt = fragments[-1].end_pdt
            fragments.append(Fragment(
                sn=details.start_sn + len(fragments),
                start=position,
                duration=duration,
                pdt=pdt,
                cc=cc,
                url=urljoin(url, line) if url else line,
            ))
            position += duration
            duration = None
            pdt = None
    
    fragments = _backfill_pdt(fragments)
    if first_pdt_index and fragments[0].pdt is not None:
        # The level anchor always refers to the first fragment
        program_date_time = format_program_date_time(fragments[0].pdt)
    
    details.fragments = fragments
    details.program_date_time = program_date_time
    
    logger.debug(
        f"Parsed playlist: {len(fragments)} fragments, sn {details.start_sn}-{details.end_sn}, "
        f"live={details.live}"
    )
    return details


def merge_level_details(previous: Optional[LevelDetails], refreshed: LevelDetails) -> LevelDetails:
    """
    Align a refreshed live playlist with the timeline of the previous one.
    
    Every parse starts the media timeline at 0, so fragments of a sliding
    live window would move backwards on each refresh. The first fragment
    SN shared by both playlists anchors the refreshed fragments to the
    start the previous playlist gave it. A refresh that continues exactly
    after the previous window is anchored to the previous end instead.
    
    Args:
        previous: LevelDetails from the last load, if any
        refreshed: Newly parsed LevelDetails of the same level
        
    Returns:
        New LevelDetails with fragment starts on the previous timeline, or
        refreshed unchanged when the two playlists cannot be aligned
        
    Example:
        >>> level = merge_level_details(level, load_level_details(url))
    """
    if previous is None or not previous.fragments or not refreshed.fragments:
        return refreshed
    
    old_first_sn = previous.fragments[0].sn
    offset = None
    for frag in refreshed.fragments:
        index = frag.sn - old_first_sn
        if 0 <= index < len(previous.fragments):
            offset = previous.fragments[index].start - frag.start
            break
    
    if offset is None:
        if refreshed.fragments[0].sn == previous.end_sn + 1:
            offset = previous.end - refreshed.start
        else:
            logger.warning(
                f"Cannot align playlist refresh: sn {refreshed.start_sn}-{refreshed.end_sn} "
                f"after {previous.start_sn}-{previous.end_sn}"
            )
            return refreshed
    
    if offset == 0:
        return refreshed
    
    logger.debug(f"Shifting refreshed fragments by {offset:.3f}s")
    return replace(
        refreshed,
        fragments=[replace(frag, start=frag.start + offset) for frag in refreshed.fragments],
    )


def load_level_details(url: str, timeout: int = 30, verify_ssl: bool = True) -> LevelDetails:
    """
    Download and parse an HLS media playlist.
    
    Args:
        url: URL to the M3U8 media playlist
        timeout: Request timeout in seconds (default: 30)
        verify_ssl: Whether to verify SSL certificates (default: True)
        
    Returns:
        LevelDetails parsed from the playlist
        
    Raises:
        PlaylistLoadError: If the download fails or the response is not a playlist
        
    Example:
        >>> details = load_level_details("https://example.com/level0.m3u8")
        >>> print(details.start_sn, len(details.fragments))
        1234 6
    """
    try:
        response = requests.get(url, timeout=timeout, verify=verify_ssl)
        response.raise_for_status()
        details = parse_media_playlist(response.text, url=url)
    except requests.RequestException as e:
        logger.error(f"Failed to download playlist from {url[:100]}: {str(e)}")
        raise PlaylistLoadError(f"Playlist download failed: {str(e)}") from e
    except ValueError as e:
        logger.error(f"Failed to parse playlist from {url[:100]}: {str(e)}")
        raise PlaylistLoadError(f"Playlist parse failed: {str(e)}") from e
    
    logger.info(f"Loaded playlist: sn={details.start_sn}, fragments={len(details.fragments)}")
    return details


def is_m3u8_url(url: str) -> bool:
    """
    Check if a URL points to an M3U8 playlist.
    
    Args:
        url: URL to check
        
    Returns:
        True if URL appears to be an M3U8 playlist, False otherwise
    """
    return url.lower().endswith('.m3u8') or '.m3u8?' in url.lower()
