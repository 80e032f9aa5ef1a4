"""
Basic FragKit usage example.

Demonstrates parsing a media playlist and picking the next fragment for a
buffer position.
"""

from fragkit import parse_media_playlist, find_next_fragment

PLAYLIST = """#EXTM3U
#EXT-X-TARGETDURATION:10
#EXT-X-MEDIA-SEQUENCE:0
#EXTINF:10.0,
seg0.ts
#EXTINF:10.0,
seg1.ts
#EXTINF:10.0,
seg2.ts
#EXT-X-ENDLIST
"""

def main():
    # Parse the playlist
    level = parse_media_playlist(PLAYLIST, url="https://example.com/vod/level0.m3u8")
    print(f"Parsed {len(level.fragments)} fragments ({level.total_duration:.1f}s)")
    
    # 9.991s is inside seg0 but within tolerance of its end, so seg1 is next
    frag = find_next_fragment(level, buffer_end=9.991)
    print(f"Next fragment: sn={frag.sn} url={frag.url}")

if __name__ == "__main__":
    main()
