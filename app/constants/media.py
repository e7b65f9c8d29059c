"""
Media Extraction Constants.

Frame sampling counts, encoding parameters and ffmpeg timeouts.
"""

# ============================================================================
# FRAME SAMPLING
# ============================================================================

PRELIMINARY_FRAME_COUNT = 4
"""Frames sent with the transcription and preliminary report (speed over coverage)."""

FULL_FRAME_COUNT = 12
"""Frames sent to scoring, diagnostics and strategy."""

FRAME_JPEG_QUALITY = 3
"""ffmpeg -q:v for sampled frames (2-31, lower is better)."""

THUMBNAIL_JPEG_QUALITY = 5
"""ffmpeg -q:v for the thumbnail."""

THUMBNAIL_MAX_SEEK_SECONDS = 1.0
"""Thumbnail is taken at min(this, duration / 2)."""


# ============================================================================
# AUDIO
# ============================================================================

AUDIO_SAMPLE_RATE = 16000
"""Sample rate of the mono WAV sent to speech-to-text."""


# ============================================================================
# TIMEOUTS (seconds)
# ============================================================================

FFPROBE_TIMEOUT = 60
FFMPEG_FRAME_TIMEOUT = 30
FFMPEG_AUDIO_TIMEOUT = 120


# ============================================================================
# UPLOADS
# ============================================================================

ALLOWED_VIDEO_EXTENSIONS = {".mp4", ".mov", ".m4v", ".webm"}
UPLOAD_CHUNK_SIZE = 1024 * 1024
