"""
The queue orchestrator: turns user input into download requests and runs
them one after another.
"""

import dataclasses
import json
import logging
from pathlib import Path
from typing import Callable, Iterable

from rich.markup import escape

from spotstage.exceptions import EmptyQueryError
from spotstage.library.credentials import stage_credential_file
from spotstage.models.config import AppConfig
from spotstage.models.job import SPECIAL_QUERIES, DownloadRequest, JobKind, JobState
from spotstage.models.stats import QueueStats
from spotstage.utils.path import format_query, infer_query_kind

from .job_runner import JobRunner
from .sink import ConsoleSink, OutputSink

log = logging.getLogger(__name__)

COMPLETION_MESSAGE = "All downloads complete!"


def expand_queries(sources: Iterable[str]) -> list[str]:
    """
    Expands sources into queries. A source naming an existing file is read as
    one query per line, skipping blanks and '#' comments. Duplicates are
    dropped, keeping the first occurrence.
    """
    expanded = []
    for source in sources:
        if Path(source).is_file():
            log.info(f"Reading queries from file: [dim]{escape(source)}[/dim]")
            try:
                with open(source, "r", encoding="utf-8") as f:
                    expanded.extend(
                        line.strip()
                        for line in f
                        if line.strip() and not line.lstrip().startswith("#")
                    )
            except (IOError, UnicodeDecodeError) as e:
                log.error(f"[red]Could not read file {escape(source)}: {e}[/red]")
        else:
            expanded.append(source)

    unique = list(dict.fromkeys(expanded))
    if len(unique) < len(expanded):
        log.info(f"Removed {len(expanded) - len(unique)} duplicate queries.")
    return unique


def build_requests(
    queries: Iterable[str],
    kind: JobKind = JobKind.ALBUM,
    output_format: str | None = None,
    bitrate: str | None = None,
    cookie_file: Path | None = None,
    premium: bool = False,
) -> list[DownloadRequest]:
    """Infers each query's kind and shapes it for the download tool."""
    requests = []
    for raw in queries:
        query = raw.strip()
        query_kind = JobKind(infer_query_kind(query, kind.value, SPECIAL_QUERIES))
        requests.append(
            DownloadRequest(
                query=format_query(query, query_kind.value) if query else query,
                kind=query_kind,
                format=output_format,
                bitrate=bitrate,
                cookie_file=cookie_file,
                premium=premium,
            )
        )
    return requests


class JobQueueDriver:
    """Runs queued download requests strictly one at a time, in order."""

    def __init__(
        self,
        config: AppConfig,
        runner: JobRunner | None = None,
        sink_factory: Callable[[], OutputSink] = ConsoleSink,
        history_dir: Path | None = None,
    ):
        self.config = config
        self.runner = runner or JobRunner(config)
        self.sink_factory = sink_factory
        self.history_dir = history_dir
        self.stats = QueueStats()

    async def run(self, requests: list[DownloadRequest]) -> QueueStats:
        """
        Processes every request in submission order. The next job starts only
        after the previous job's output stream is closed.

        Raises:
            ProcessStartError: If the download tool cannot be started. The
                remaining requests are not attempted.
        """
        if not requests:
            log.info("No queries provided. Nothing to do.")
            return self.stats

        for request in requests:
            self.stats.queries.append(request.query)
            if request.cookie_file is not None:
                staged = await stage_credential_file(request.cookie_file)
                request = dataclasses.replace(request, cookie_file=staged)

            try:
                job = await self.runner.run(request, self.sink_factory())
            except EmptyQueryError as e:
                log.error(f"[red]✗ {e} Skipping.[/red]")
                self.stats.jobs_skipped += 1
                continue
            except Exception:
                self.stats.jobs_failed += 1
                raise

            if job.state is JobState.COMPLETED:
                self.stats.jobs_completed += 1
            else:
                self.stats.jobs_failed += 1
                log.warning(
                    f"[yellow]⚠ Download of '{escape(job.query)}' exited with code "
                    f"{job.exit_code}.[/yellow]"
                )
            if job.manifest_path is not None:
                self.stats.manifests_written += 1

        log.info(f"[bold green]{COMPLETION_MESSAGE}[/bold green]")
        return self.stats

    def save_history(self) -> None:
        """Appends this queue run to the job history file."""
        if self.history_dir is None:
            return
        history_file = Path(self.history_dir) / "job_history.jsonl"
        try:
            history_file.parent.mkdir(parents=True, exist_ok=True)
            with open(history_file, "a", encoding="utf-8") as f:
                json.dump(self.stats.as_history_entry(), f)
                f.write("\n")
        except IOError as e:
            log.warning(f"[yellow]Could not save job history:[/] {e}")
