"""Video filter chain and color metadata planning."""

from __future__ import annotations

from muxmaster.config.models import RunConfig
from muxmaster.domain.enums import EncoderMode, HDRMode
from muxmaster.domain.models import VideoStream

DEINTERLACE_FILTER = "yadif=mode=send_frame:parity=auto:deint=interlaced"

TONEMAP_FILTER = (
    "zscale=t=linear:npl=100,format=gbrpf32le,zscale=p=bt709,"
    "tonemap=tonemap=hable:desat=0,"
    "zscale=t=bt709:m=bt709:r=tv,format=yuv420p"
)

DEFAULT_VAAPI_SW_FORMAT = "p010"


def build_video_filters(video: VideoStream, config: RunConfig) -> str:
    """Build the ordered, comma-joined video filter chain.

    Order matters: deinterlace, then tonemap, then the hardware upload
    for VAAPI. Returns an empty string when no filter applies.
    """
    filters: list[str] = []

    if config.deinterlace_auto and video.is_interlaced:
        filters.append(DEINTERLACE_FILTER)

    if config.hdr_mode is HDRMode.TONEMAP and video.is_hdr:
        filters.append(TONEMAP_FILTER)

    if config.encoder_mode is EncoderMode.VAAPI:
        sw_format = config.vaapi_sw_format or DEFAULT_VAAPI_SW_FORMAT
        filters.extend((f"format={sw_format}", "hwupload"))

    return ",".join(filters)


def build_color_opts(video: VideoStream, config: RunConfig) -> tuple[str, ...]:
    """Carry HDR color tags through when preserving HDR.

    Each tag is emitted only when the source reports it.
    """
    if config.hdr_mode is not HDRMode.PRESERVE or not video.is_hdr:
        return ()

    opts: list[str] = []
    if video.color_transfer:
        opts.extend(("-color_trc", video.color_transfer))
    if video.color_primaries:
        opts.extend(("-color_primaries", video.color_primaries))
    if video.color_space:
        opts.extend(("-colorspace", video.color_space))
    return tuple(opts)
