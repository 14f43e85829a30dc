"""ffmpeg-backed compression of fetched media.

The encoder runs against a scratch copy of the input. Scratch files and the
encoder process are owned by context managers, so every way out of
``Transcoder.compress`` (success, bad exit code, spawn failure, cancellation)
removes both files and never leaves a running ffmpeg behind.

Compression is optional by contract: ``compress`` reports failure through
``CompressionOutcome.succeeded`` and hands the original bytes back. Only
cancellation propagates.
"""
import asyncio
import logging
import tempfile
import uuid
from contextlib import ExitStack, asynccontextmanager, contextmanager, suppress
from pathlib import Path

import anyio

from clipvault.core.config import Settings
from clipvault.modules.acquisition.types import CompressionOptions, CompressionOutcome

logger = logging.getLogger(__name__)

COMPRESSED_MIME_TYPE = "video/mp4"
STDERR_TAIL_CHARS = 500

MIME_EXTENSIONS = {
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/quicktime": "mov",
    "video/x-msvideo": "avi",
    "video/x-matroska": "mkv",
    "video/mpeg": "mpeg",
    "video/3gpp": "3gp",
}

def extension_for(mime_type: str) -> str:
    return MIME_EXTENSIONS.get(mime_type.split(";")[0].strip().lower(), "mp4")

def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    return f"{size / (1024 * 1024 * 1024):.2f} GB"

def build_ffmpeg_args(binary: str, src: Path, dst: Path, *, max_height: int, video_bitrate: str, crf: str, audio_bitrate: str) -> list[str]:
    bufsize = f"{int(video_bitrate.rstrip('kK')) * 2}k"
    return [
        binary,
        "-y",
        "-i", str(src),
        # video: H.264, CRF quality with a bitrate ceiling
        "-c:v", "libx264",
        "-preset", "medium",
        "-crf", crf,
        "-maxrate", video_bitrate,
        "-bufsize", bufsize,
        # cap height, keep aspect ratio, never upscale
        "-vf", f"scale=-2:'min({max_height},ih)'",
        # audio: AAC stereo
        "-c:a", "aac",
        "-b:a", audio_bitrate,
        "-ac", "2",
        # progressive streaming layout
        "-movflags", "+faststart",
        "-pix_fmt", "yuv420p",
        str(dst),
    ]

@contextmanager
def _scratch_file(directory: str, extension: str):
    path = Path(directory) / f"{uuid.uuid4().hex}.{extension}"
    try:
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.debug(f"Could not remove scratch file {path}: {e}")

@asynccontextmanager
async def _encoder_process(*args: str):
    proc = await asyncio.create_subprocess_exec(
        *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        yield proc
    finally:
        if proc.returncode is None:
            with suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()

class Transcoder:
    def __init__(self, settings: Settings):
        self.ffmpeg = settings.FFMPEG_BINARY
        self.ffprobe = settings.FFPROBE_BINARY
        self.tmp_dir = settings.TRANSCODE_TMP_DIR or tempfile.gettempdir()
        self.defaults = CompressionOptions(
            max_resolution_height=settings.VIDEO_MAX_RESOLUTION,
            video_bitrate=settings.VIDEO_BITRATE,
            quality_factor=settings.VIDEO_CRF,
            audio_bitrate=settings.AUDIO_BITRATE,
        )
        self._available: bool | None = None

    async def is_available(self) -> bool:
        """Cheap ``ffmpeg -version`` probe, cached for the life of the instance."""
        if self._available is None:
            try:
                async with _encoder_process(self.ffmpeg, "-version") as proc:
                    await proc.communicate()
                self._available = proc.returncode == 0
            except OSError as e:
                logger.warning(f"ffmpeg not available ({self.ffmpeg}): {e}")
                self._available = False
        return self._available

    async def compress(self, data: bytes, mime_type: str, options: CompressionOptions | None = None) -> CompressionOutcome:
        opts = options or CompressionOptions()
        original_size = len(data)
        if self._available is False:
            return self._degraded(data, mime_type, f"{self.ffmpeg} is not installed")
        try:
            with ExitStack() as scratch:
                src = scratch.enter_context(_scratch_file(self.tmp_dir, extension_for(mime_type)))
                dst = scratch.enter_context(_scratch_file(self.tmp_dir, "mp4"))
                await anyio.to_thread.run_sync(src.write_bytes, data)

                args = build_ffmpeg_args(
                    self.ffmpeg, src, dst,
                    max_height=opts.max_resolution_height or self.defaults.max_resolution_height,
                    video_bitrate=opts.video_bitrate or self.defaults.video_bitrate,
                    crf=opts.quality_factor or self.defaults.quality_factor,
                    audio_bitrate=opts.audio_bitrate or self.defaults.audio_bitrate,
                )
                async with _encoder_process(*args) as proc:
                    _, stderr = await proc.communicate()
                if proc.returncode != 0:
                    tail = stderr.decode(errors="replace")[-STDERR_TAIL_CHARS:]
                    return self._degraded(data, mime_type, f"ffmpeg exited with code {proc.returncode}: {tail}")

                compressed = await anyio.to_thread.run_sync(dst.read_bytes)
                duration = await self.probe_duration(dst)
        except Exception as e:
            logger.error(f"Compression attempt failed before completion: {e!r}", exc_info=True)
            return self._degraded(data, mime_type, f"ffmpeg spawn error: {e}")

        if not compressed:
            return self._degraded(data, mime_type, "ffmpeg produced an empty file")
        if len(compressed) > original_size:
            return self._degraded(data, mime_type, "compressed output is larger than the original")

        final_size = len(compressed)
        ratio = (1 - final_size / original_size) * 100 if original_size else 0.0
        logger.info(f"Compressed video: {format_size(original_size)} -> {format_size(final_size)} ({ratio:.1f}% reduction)")
        return CompressionOutcome(
            succeeded=True,
            data=compressed,
            original_size=original_size,
            final_size=final_size,
            ratio_percent=ratio,
            normalized_mime_type=COMPRESSED_MIME_TYPE,
            duration_seconds=duration,
        )

    async def probe_duration(self, path: Path) -> int | None:
        """Best-effort duration in whole seconds; ``None`` when ffprobe can't tell."""
        try:
            async with _encoder_process(
                self.ffprobe, "-v", "error",
                "-show_entries", "format=duration",
                "-of", "default=noprint_wrappers=1:nokey=1",
                str(path),
            ) as proc:
                stdout, _ = await proc.communicate()
        except OSError:
            return None
        if proc.returncode != 0:
            return None
        try:
            return int(float(stdout.decode().strip()))
        except ValueError:
            return None

    def _degraded(self, data: bytes, mime_type: str, reason: str) -> CompressionOutcome:
        logger.warning(f"Compression unavailable, keeping original: {reason}")
        return CompressionOutcome(
            succeeded=False,
            data=data,
            original_size=len(data),
            final_size=len(data),
            ratio_percent=0.0,
            normalized_mime_type=mime_type,
            error=reason,
        )
