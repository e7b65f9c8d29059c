"""
Frame, audio and thumbnail extraction with ffmpeg/ffprobe.

Every helper shells out to the binaries named in settings and keeps the
output in memory; nothing is written next to the uploaded file.
"""
import base64
import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence

from app.config import get_settings
from app.constants import (
    FRAME_JPEG_QUALITY,
    THUMBNAIL_JPEG_QUALITY,
    THUMBNAIL_MAX_SEEK_SECONDS,
    AUDIO_SAMPLE_RATE,
    FFPROBE_TIMEOUT,
    FFMPEG_FRAME_TIMEOUT,
    FFMPEG_AUDIO_TIMEOUT,
)

logger = logging.getLogger(__name__)

# RIFF header only, no samples
WAV_HEADER_SIZE = 44


class MediaExtractionError(Exception):
    """ffprobe/ffmpeg could not read the video."""
    pass


@dataclass
class Frame:
    timestamp: float
    base64_data: str

    @property
    def data_url(self) -> str:
        return f"data:image/jpeg;base64,{self.base64_data}"


def get_video_duration(video_path: str) -> float:
    """Get video duration in seconds."""
    settings = get_settings()
    duration_cmd = [
        settings.ffprobe_binary, '-v', 'error',
        '-show_entries', 'format=duration',
        '-of', 'default=noprint_wrappers=1:nokey=1',
        video_path
    ]

    try:
        result = subprocess.run(duration_cmd, capture_output=True, text=True, timeout=FFPROBE_TIMEOUT)
    except (subprocess.TimeoutExpired, FileNotFoundError) as e:
        raise MediaExtractionError(f"ffprobe failed for {video_path}: {e}") from e

    try:
        duration = float(result.stdout.strip())
    except ValueError as e:
        raise MediaExtractionError(
            f"Could not read duration of {video_path}: {result.stderr.strip() or 'no output'}"
        ) from e

    if duration <= 0:
        raise MediaExtractionError(f"Video {video_path} has no playable duration")
    return duration


def frame_timestamps(duration: float, num_frames: int) -> List[float]:
    """
    Evenly spaced sample points that avoid the very first and last instant:
    interval = duration / (n + 1), samples at interval * 1..n.
    """
    if duration <= 0 or num_frames <= 0:
        return []
    interval = duration / (num_frames + 1)
    return [interval * (i + 1) for i in range(num_frames)]


def _grab_jpeg(video_path: str, timestamp: float, quality: int) -> Optional[bytes]:
    settings = get_settings()
    cmd = [
        settings.ffmpeg_binary,
        '-hide_banner',
        '-nostats',
        '-loglevel', 'error',
        '-ss', f"{timestamp:.3f}",
        '-i', video_path,
        '-vframes', '1',
        '-q:v', str(quality),
        '-f', 'image2pipe',
        '-vcodec', 'mjpeg',
        '-'
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, timeout=FFMPEG_FRAME_TIMEOUT)
    except subprocess.TimeoutExpired:
        logger.warning(f"Frame extraction timeout at {timestamp:.1f}s")
        return None

    if result.returncode != 0 or not result.stdout:
        logger.warning(
            f"No frame at {timestamp:.1f}s: {result.stderr.decode('utf-8', 'ignore').strip()[:200]}"
        )
        return None
    return result.stdout


def extract_frames(video_path: str, num_frames: int) -> List[Frame]:
    """
    Extracts `num_frames` JPEG frames spread across the video.

    Args:
        video_path: Local path of the video
        num_frames: How many frames to sample

    Returns:
        Frames sorted by timestamp. Frames ffmpeg could not decode are skipped,
        so the list can be shorter than requested (or empty).
    """
    duration = get_video_duration(video_path)
    timestamps = frame_timestamps(duration, num_frames)

    frames = []
    for timestamp in timestamps:
        jpeg = _grab_jpeg(video_path, timestamp, FRAME_JPEG_QUALITY)
        if jpeg:
            frames.append(Frame(
                timestamp=timestamp,
                base64_data=base64.b64encode(jpeg).decode('ascii')
            ))

    logger.info(f"Extracted {len(frames)}/{num_frames} frames across {duration:.1f}s video")
    return sorted(frames, key=lambda f: f.timestamp)


def extract_audio_wav(video_path: str) -> Optional[bytes]:
    """
    Decodes the first audio track to 16-bit mono WAV.

    Returns:
        WAV bytes, or None when the video has no audio track.
    """
    settings = get_settings()
    cmd = [
        settings.ffmpeg_binary,
        '-hide_banner',
        '-nostats',
        '-loglevel', 'error',
        '-i', video_path,
        '-vn',
        '-ac', '1',
        '-ar', str(AUDIO_SAMPLE_RATE),
        '-acodec', 'pcm_s16le',
        '-f', 'wav',
        '-'
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, timeout=FFMPEG_AUDIO_TIMEOUT)
    except subprocess.TimeoutExpired:
        logger.warning(f"Audio extraction timeout for {video_path}")
        return None

    if result.returncode != 0 or len(result.stdout) <= WAV_HEADER_SIZE:
        logger.warning(f"Audio extraction failed, the video may not have an audio track: {video_path}")
        return None
    return result.stdout


def generate_thumbnail(video_path: str) -> str:
    """
    Grabs a representative frame, 1s in or mid-way for very short videos.

    Returns:
        JPEG as a data URL
    """
    duration = get_video_duration(video_path)
    seek = min(THUMBNAIL_MAX_SEEK_SECONDS, duration / 2)

    jpeg = _grab_jpeg(video_path, seek, THUMBNAIL_JPEG_QUALITY)
    if not jpeg:
        raise MediaExtractionError(f"Could not generate thumbnail for {video_path}")
    return f"data:image/jpeg;base64,{base64.b64encode(jpeg).decode('ascii')}"


def find_closest_timestamp(target: float, available_timestamps: Sequence[float]) -> float:
    """Returns the available timestamp closest to `target` (the earliest one on ties, 0 if none)."""
    if not available_timestamps:
        return 0.0
    return min(available_timestamps, key=lambda t: abs(t - target))
