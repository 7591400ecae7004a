"""Video metadata extraction with ffprobe."""

import json
import subprocess
from typing import Any, Optional

from vidvault.config import settings
from vidvault.errors import InternalError
from vidvault.logging_config import logger


def _number(value: Any) -> Optional[float]:
    """ffprobe reports most numbers as strings."""
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _stream(streams: list[dict], codec_type: str) -> dict:
    return next((s for s in streams if s.get("codec_type") == codec_type), {})


def parse_probe_output(probe: dict) -> dict:
    """Reduce raw ``ffprobe -show_format -show_streams`` JSON to a flat summary."""
    fmt = probe.get("format", {})
    streams = probe.get("streams", [])
    video_stream = _stream(streams, "video")
    audio_stream = _stream(streams, "audio")

    duration = _number(fmt.get("duration"))
    size = _number(fmt.get("size"))
    bitrate = _number(fmt.get("bit_rate"))

    rotation = _number(video_stream.get("tags", {}).get("rotate"))
    for side_data in video_stream.get("side_data_list", []):
        if "rotation" in side_data:
            rotation = _number(side_data["rotation"])

    summary = {
        "duration": round(duration) if duration is not None else 0,
        "width": video_stream.get("width"),
        "height": video_stream.get("height"),
        "format": fmt.get("format_name"),
        "size": int(size) if size is not None else 0,
        "codec": video_stream.get("codec_name"),
        "bitrate": int(bitrate) if bitrate is not None else None,
        "audioCodec": audio_stream.get("codec_name"),
        "rotation": int(rotation) if rotation is not None else None,
    }
    return {key: value for key, value in summary.items() if value is not None}


def extract_video_metadata(video_path: str) -> dict:
    """
    Run ffprobe on a local file and summarise its format and streams.

    Args:
        video_path: Path to video file

    Returns:
        Dict with duration, width, height, format, size, codec, bitrate,
        audioCodec and rotation (keys omitted when unknown)

    Raises:
        InternalError: If ffprobe fails or prints something unparseable
    """
    cmd = [
        settings.ffprobe_path,
        "-v", "error",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        video_path,
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        logger.error("ffprobe could not be started", path=video_path, error=str(e))
        raise InternalError("Failed to extract video metadata")

    if result.returncode != 0:
        logger.error("ffprobe failed", path=video_path, stderr=result.stderr.strip())
        raise InternalError("Failed to extract video metadata")

    try:
        probe = json.loads(result.stdout)
    except json.JSONDecodeError:
        raise InternalError("Failed to extract video metadata")

    return parse_probe_output(probe)
