"""Render Engine - runs ffmpeg on a compiled render-graph program."""

import re
import subprocess
import threading
import time
from collections import deque
from pathlib import Path
from typing import Any, Optional

from docfactory.core.config import Settings
from docfactory.core.errors import RenderEngineFailure
from docfactory.core.progress import STAGE_RENDER, ProgressSink, emit_progress
from docfactory.models.schemas import RenderGraphProgram
from docfactory.utils.io_utils import remove_quietly

_TIME_PATTERN = re.compile(r"time=(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")
DIAGNOSTIC_TAIL_LINES = 40


def parse_elapsed_seconds(line: str) -> Optional[float]:
    """
    Extract the elapsed output time from an ffmpeg status line.

    Args:
        line: One stderr line, e.g. 'frame= 120 ... time=00:00:04.00 ...'

    Returns:
        Elapsed seconds, or None if the line carries no time marker
    """
    match = _TIME_PATTERN.search(line)
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


class RenderEngine:
    """Blocking single-job wrapper around the ffmpeg binary."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize render engine.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.binary = settings.ffmpeg_binary

    def run(
        self,
        program: RenderGraphProgram,
        output_path: Path,
        progress: Optional[ProgressSink] = None,
    ) -> Path:
        """
        Render a program to a file. Never retries.

        The advisory timeout only logs. The optional hard timeout terminates the
        engine and deletes the partial output.

        Args:
            program: Compiled render-graph program
            output_path: Destination video file
            progress: Optional progress sink (percent parsed from engine time markers)

        Returns:
            The rendered file

        Raises:
            RenderEngineFailure: On a missing binary, non-zero exit, hard timeout or missing output
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        command = program.to_command(self.binary, str(output_path))
        duration = program.duration_seconds

        self.logger.info(f"Starting render: {output_path.name} ({duration:.2f}s, {len(program.inputs)} inputs)")
        self.logger.debug(f"Filter graph: {program.filter_complex()}")

        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as e:
            raise RenderEngineFailure(f"Rendering engine not found: {self.binary}") from e

        timed_out = threading.Event()
        timers = self._start_timers(process, timed_out)
        tail: deque[str] = deque(maxlen=DIAGNOSTIC_TAIL_LINES)
        last_percent = -1
        start_time = time.time()

        try:
            for line in process.stderr:
                line = line.rstrip()
                if not line:
                    continue
                tail.append(line)
                elapsed = parse_elapsed_seconds(line)
                if elapsed is None:
                    continue
                percent = int(min(100.0, elapsed / duration * 100.0))
                if percent > last_percent:
                    last_percent = percent
                    emit_progress(progress, STAGE_RENDER, f"Rendering {percent}%", percent=float(percent))
            returncode = process.wait()
        finally:
            for timer in timers:
                timer.cancel()
            if process.poll() is None:
                process.kill()
                process.wait()

        diagnostics = "\n".join(tail)
        if timed_out.is_set():
            remove_quietly(output_path)
            raise RenderEngineFailure(
                f"Render exceeded {self.settings.render_hard_timeout_seconds}s and was terminated",
                returncode=returncode,
                diagnostics=diagnostics,
                timed_out=True,
            )
        if returncode != 0:
            if remove_quietly(output_path):
                self.logger.warning(f"Deleted partial output {output_path}")
            raise RenderEngineFailure("Rendering engine failed", returncode=returncode, diagnostics=diagnostics)
        if not output_path.exists():
            raise RenderEngineFailure(
                f"Rendering engine exited cleanly but produced no file at {output_path}",
                returncode=returncode,
                diagnostics=diagnostics,
            )

        self.logger.info(f"Render finished in {time.time() - start_time:.1f}s: {output_path}")
        emit_progress(progress, STAGE_RENDER, "Render complete", percent=100.0)
        return output_path

    def _start_timers(self, process: subprocess.Popen, timed_out: threading.Event) -> list[threading.Timer]:
        timers = []
        advisory = self.settings.render_advisory_timeout_seconds
        hard = self.settings.render_hard_timeout_seconds

        if advisory:
            def warn():
                self.logger.warning(f"Render still running after {advisory:.0f}s (advisory timeout, not aborting)")

            timers.append(threading.Timer(advisory, warn))

        if hard:
            def terminate():
                timed_out.set()
                self.logger.error(f"Render exceeded hard timeout of {hard:.0f}s, terminating engine")
                process.terminate()
                try:
                    process.wait(timeout=10)
                except subprocess.TimeoutExpired:
                    process.kill()

            timers.append(threading.Timer(hard, terminate))

        for timer in timers:
            timer.daemon = True
            timer.start()
        return timers
