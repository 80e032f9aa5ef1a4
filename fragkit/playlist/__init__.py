"""
Playlist module for FragKit.

Provides HLS media playlist parsing and loading into LevelDetails.
"""

from .m3u8 import (
    PlaylistLoadError,
    parse_media_playlist,
    merge_level_details,
    load_level_details,
    is_m3u8_url,
)

__all__ = [
    'PlaylistLoadError',
    'parse_media_playlist',
    'merge_level_details',
    'load_level_details',
    'is_m3u8_url',
]
