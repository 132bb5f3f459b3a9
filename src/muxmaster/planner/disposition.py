"""Stream disposition flags."""

from __future__ import annotations


def build_dispositions(audio_count: int) -> tuple[str, ...]:
    """Mark the video and first audio stream default; clear the rest.

    Args:
        audio_count: Number of audio streams in the output.

    Returns:
        Flat ffmpeg option tuple.
    """
    opts = ["-disposition:v:0", "default"]
    if audio_count > 0:
        opts.extend(("-disposition:a:0", "default"))
        for position in range(1, audio_count):
            opts.extend((f"-disposition:a:{position}", "0"))
    return tuple(opts)
