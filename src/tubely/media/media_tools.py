"""External media tools: stream probing and fast-start remuxing."""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..config import MediaToolSettings
from ..ingest.ingest_errors import ProbeFailedError, RemuxFailedError
from ..ingest.ingest_models import ProbeResult

REMUX_SUFFIX = ".processing"
STDERR_EXCERPT_BYTES = 2048


class MediaToolkit(ABC):
    """Narrow interface over the probe and remux tools."""

    @abstractmethod
    async def probe(self, path: Path) -> ProbeResult:
        """Return the geometry of the first stream in ``path``."""

    @abstractmethod
    async def remux(self, path: Path) -> Path:
        """Write a fast-start copy of ``path`` and return its location."""


@dataclass(slots=True)
class ToolRun:
    """Outcome of one subprocess invocation."""

    args: list[str]
    returncode: int | None
    stdout: bytes
    stderr: bytes

    def stderr_excerpt(self) -> str:
        return self.stderr[-STDERR_EXCERPT_BYTES:].decode("utf-8", errors="replace").strip()


class ToolTimeoutError(Exception):
    """Raised when a tool exceeds its deadline."""


def parse_probe_output(stdout: bytes) -> ProbeResult:
    """Turn ``ffprobe -print_format json -show_streams`` output into a result."""
    try:
        payload: Any = json.loads(stdout)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ProbeFailedError("ffprobe output is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ProbeFailedError("ffprobe output is not an object")

    streams = payload.get("streams")
    if not isinstance(streams, list) or not streams:
        raise ProbeFailedError("no streams found in video")

    first = streams[0]
    if not isinstance(first, dict):
        raise ProbeFailedError("ffprobe stream entry is not an object")

    width = first.get("width", 0)
    height = first.get("height", 0)
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ProbeFailedError(f"ffprobe reported invalid {name}: {value!r}")
    return ProbeResult(width=width, height=height)


@dataclass(slots=True)
class FFmpegToolkit(MediaToolkit):
    """Runs ffprobe/ffmpeg as child processes with a hard deadline."""

    settings: MediaToolSettings
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def probe_args(self, path: Path) -> list[str]:
        return [
            self.settings.ffprobe_bin,
            "-v", "error",
            "-print_format", "json",
            "-show_streams",
            str(path),
        ]

    def remux_args(self, source: Path, target: Path) -> list[str]:
        return [
            self.settings.ffmpeg_bin,
            "-i", str(source),
            "-c", "copy",
            "-movflags", "faststart",
            "-f", "mp4",
            str(target),
        ]

    async def probe(self, path: Path) -> ProbeResult:
        args = self.probe_args(path)
        try:
            run = await self._run(args)
        except (OSError, ToolTimeoutError) as exc:
            self.log.error(
                "media.probe.spawn_failed",
                extra={"path": str(path), "argv": args, "error": str(exc)},
            )
            raise ProbeFailedError(f"ffprobe could not run: {exc}") from exc

        if run.returncode != 0:
            self.log.error(
                "media.probe.failed",
                extra={
                    "path": str(path),
                    "argv": args,
                    "returncode": run.returncode,
                    "stderr": run.stderr_excerpt(),
                },
            )
            raise ProbeFailedError(f"ffprobe exited with status {run.returncode}")

        try:
            result = parse_probe_output(run.stdout)
        except ProbeFailedError as exc:
            self.log.error(
                "media.probe.unusable_output",
                extra={"path": str(path), "argv": args, "error": str(exc)},
            )
            raise
        self.log.info(
            "media.probe.done",
            extra={"path": str(path), "width": result.width, "height": result.height},
        )
        return result

    async def remux(self, path: Path) -> Path:
        target = path.with_name(path.name + REMUX_SUFFIX)
        args = self.remux_args(path, target)
        try:
            run = await self._run(args)
        except (OSError, ToolTimeoutError) as exc:
            target.unlink(missing_ok=True)
            self.log.error(
                "media.remux.spawn_failed",
                extra={"path": str(path), "argv": args, "error": str(exc)},
            )
            raise RemuxFailedError(f"ffmpeg could not run: {exc}") from exc
        except asyncio.CancelledError:
            target.unlink(missing_ok=True)
            raise

        if run.returncode != 0 or not target.is_file():
            target.unlink(missing_ok=True)
            self.log.error(
                "media.remux.failed",
                extra={
                    "path": str(path),
                    "argv": args,
                    "returncode": run.returncode,
                    "stderr": run.stderr_excerpt(),
                },
            )
            raise RemuxFailedError(f"ffmpeg exited with status {run.returncode}")

        self.log.info("media.remux.done", extra={"path": str(path), "output": str(target)})
        return target

    async def _run(self, args: list[str]) -> ToolRun:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.settings.timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            await self._kill(process)
            raise ToolTimeoutError(
                f"{args[0]} did not finish within {self.settings.timeout_seconds}s"
            ) from exc
        except asyncio.CancelledError:
            await self._kill(process)
            raise
        return ToolRun(args=args, returncode=process.returncode, stdout=stdout, stderr=stderr)

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await process.wait()
