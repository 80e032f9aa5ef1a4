"""
FragKit - Fragment Lookup for HLS Playback

A small library that decides which media fragment an adaptive streaming
player should load next, by wall-clock time or by buffer position.

Features:
- Project the PROGRAM-DATE-TIME of the next load position
- Find fragments by PDT with strict end-boundary semantics
- Find fragments by SN continuity with a tolerance-aware fallback search
- Parse HLS media playlists (M3U8) into level details

Example usage:
    >>> from fragkit import load_level_details, find_next_fragment
    >>> 
    >>> # Load a media playlist
    >>> level = load_level_details("https://example.com/level0.m3u8")
    >>> 
    >>> # Pick the fragment that continues a buffer ending at 12s
    >>> frag = find_next_fragment(level, buffer_end=12.0)
    >>> print(frag.sn, frag.url)
"""

import logging

__version__ = "0.1.0"
__author__ = "FragKit Contributors"
__license__ = "MIT"

# Add NullHandler to prevent "No handler found" warnings
# Users should configure logging in their application if they want to see logs
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Core utility functions
from .utils import (
    parse_program_date_time,
    format_program_date_time,
    binary_search,
)

# Fragment lookup
from .finders import (
    FragmentPosition,
    ToleranceWindow,
    calculate_next_pdt,
    find_fragment_by_pdt,
    find_fragment_by_sn,
    classify,
)
from .locator import find_next_fragment, find_next_fragment_from_config

# Data models
from .models import Fragment, LevelDetails, FragmentLookupConfig

# Playlist utilities
from .playlist import (
    PlaylistLoadError,
    parse_media_playlist,
    merge_level_details,
    load_level_details,
    is_m3u8_url,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    
    # Core utility functions
    "parse_program_date_time",
    "format_program_date_time",
    "binary_search",
    
    # Fragment lookup
    "FragmentPosition",
    "ToleranceWindow",
    "calculate_next_pdt",
    "find_fragment_by_pdt",
    "find_fragment_by_sn",
    "classify",
    "find_next_fragment",
    "find_next_fragment_from_config",
    
    # Models
    "Fragment",
    "LevelDetails",
    "FragmentLookupConfig",
    
    # Playlist utilities
    "PlaylistLoadError",
    "parse_media_playlist",
    "merge_level_details",
    "load_level_details",
    "is_m3u8_url",
]
