"""
Live playback example.

Demonstrates following a live HLS level the way a player loop would:

Pipeline:
1. Load the media playlist
2. Pick the next fragment by PDT (falls back to SN lookup)
3. Pretend to append it and advance the buffer
4. Refresh and align the playlist, then continue from the last appended fragment
"""

import logging
import time

from fragkit import (
    FragmentLookupConfig,
    find_next_fragment_from_config,
    load_level_details,
    merge_level_details,
)

# Configure logging to see fragkit internal logs
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

def main():
    playlist_url = "https://example.com/live/level0.m3u8"
    config = FragmentLookupConfig(max_frag_lookup_tolerance=0.25)
    
    level = load_level_details(playlist_url)
    frag_previous = None
    # Start three target durations behind the live edge
    buffer_end = max(level.start, level.end - 3 * level.target_duration)
    
    for _ in range(5):
        frag = find_next_fragment_from_config(level, buffer_end, frag_previous, config)
        if frag is None:
            print("Buffered up to the live edge, waiting for a refresh...")
            time.sleep(level.target_duration or 2)
            # Keep the refreshed window on the same timeline as the buffer
            level = merge_level_details(level, load_level_details(playlist_url))
            continue
        
        print(f"Loading sn={frag.sn} start={frag.start:.3f}s pdt={frag.pdt}")
        frag_previous = frag
        buffer_end = frag.end

if __name__ == "__main__":
    main()
