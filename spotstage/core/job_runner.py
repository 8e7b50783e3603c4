"""
Runs one queued download through the external tool, from building its
command line to writing the playlist manifest once the tool exits.
"""

import logging
from pathlib import Path

import aiofiles.os
from rich.markup import escape

from spotstage.exceptions import EmptyQueryError, ProcessStartError
from spotstage.library.credentials import credential_scope
from spotstage.models.config import FALLBACK_OUTPUT, AppConfig
from spotstage.models.job import DownloadJob, DownloadRequest, JobState
from spotstage.utils.path import (
    match_playlist_name,
    output_argument,
    playlist_directory,
)
from spotstage.utils.playlist import write_m3u8

from .process import stream_process
from .sink import OutputSink

log = logging.getLogger(__name__)

COMPLETION_MARKER = "\nProcess finished with exit code {code}\n"


class JobRunner:
    """
    Drives a ``DownloadJob`` through Built -> Running -> Completed/Failed.

    The job is the only state that changes during a run: its output
    directory is set by the first playlist announcement on stdout, and its
    exit code when the process ends.
    """

    def __init__(self, config: AppConfig):
        self.config = config
        self.staging_root = Path(config.downloads_dir)

    def build_job(self, request: DownloadRequest) -> DownloadJob:
        """Validates a request and derives the job for it."""
        query = request.query.strip()
        if not query:
            raise EmptyQueryError()

        job = DownloadJob(
            query=query,
            kind=request.kind,
            output_format=request.format or self.config.format,
            bitrate=request.bitrate or self.config.bitrate,
            output_template="",
            cookie_file=request.cookie_file,
            premium=request.premium,
        )
        template = (
            self.config.playlist_output if job.is_playlist else self.config.album_output
        )
        job.output_template = output_argument(
            self.staging_root, template or FALLBACK_OUTPUT
        )
        return job

    def build_invocation(self, job: DownloadJob) -> list[str]:
        """Assembles the tool's command line for a job."""
        args = [self.config.spotdl_path, "download", job.query]

        if job.output_format:
            args.extend(["--format", job.output_format])

        if job.bitrate and job.bitrate != "auto":
            args.extend(["--bitrate", job.bitrate])

        if job.uses_cookie_file:
            args.extend(["--cookie-file", str(job.cookie_file)])

        args.extend(["--output", job.output_template])

        if self.config.threads:
            args.extend(["--threads", str(self.config.threads)])

        if job.needs_user_auth:
            args.append("--user-auth")

        return args

    async def run(self, request: DownloadRequest, sink: OutputSink) -> DownloadJob:
        """
        Runs one download, streaming the tool's output into ``sink``.

        The request's cookie file is deleted when the run ends, whatever the
        outcome. A nonzero exit code is not raised; it is recorded on the
        returned job.

        Raises:
            EmptyQueryError: If the query is blank. Nothing is started.
            ProcessStartError: If the tool cannot be started. The sink is left
                untouched so the caller can report a structured error instead.
        """
        async with credential_scope(request.cookie_file):
            job = self.build_job(request)
            command = self.build_invocation(job)
            label = job.kind.value.replace("-", " ").title()
            log.info(f"[bold cyan]▶ {label}:[/] {escape(job.query)}")
            log.debug(f"Running download tool with args: {escape(str(command))}")

            job.state = JobState.RUNNING
            try:
                exit_code = await stream_process(
                    command,
                    sink,
                    on_stdout=lambda text: self._observe_stdout(job, text),
                    on_stderr=lambda text: self._observe_stderr(job, text),
                )
            except ProcessStartError:
                job.state = JobState.FAILED
                raise

            job.finish(exit_code)
            log.debug(f"Download tool exited with code {exit_code}.")

            if job.is_playlist:
                await self._write_manifest(job)

            await sink.write(COMPLETION_MARKER.format(code=exit_code))
            await sink.close()
            return job

    def _observe_stdout(self, job: DownloadJob, text: str) -> None:
        line_start = job.stdout_text.rfind("\n") + 1
        window = job.stdout_text[line_start:] + text
        job.stdout_text += text

        if not job.is_playlist or job.output_directory is not None:
            return
        if name := match_playlist_name(window):
            job.record_playlist(name, playlist_directory(self.staging_root, name))
            log.info(f"Found playlist: [bold]{escape(name)}[/bold]")
            log.debug(f"Expecting playlist files in '{job.output_directory}'.")

    def _observe_stderr(self, job: DownloadJob, text: str) -> None:
        job.stderr_text += text

    async def _write_manifest(self, job: DownloadJob) -> None:
        if not (job.output_directory and job.playlist_name):
            log.info(
                "[yellow]Could not create playlist file: "
                "no playlist name was announced.[/yellow]"
            )
            return

        if not await aiofiles.os.path.isdir(job.output_directory):
            log.warning(
                f"[yellow]Playlist directory does not exist: "
                f"{escape(str(job.output_directory))}[/yellow]"
            )
            return

        job.manifest_path = await write_m3u8(job.output_directory, job.playlist_name)
