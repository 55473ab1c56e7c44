"""Tests for Rich progress reporter."""
from io import StringIO

import pytest
from rich.console import Console
from rich.text import Text

from tunesort.core.models import EngineState, ProgressSnapshot, RunSummary
from tunesort.logging.rich_logger import QuietProgressReporter, RichProgressReporter
from tunesort.services.analyzer import LibraryStats


def make_console() -> Console:
    return Console(file=StringIO(), force_terminal=False, width=120)


class TestRichProgressReporter:
    """Tests for Rich progress reporter."""

    @pytest.fixture
    def console(self):
        return make_console()

    @pytest.fixture
    def reporter(self, console):
        reporter = RichProgressReporter(console=console)
        yield reporter
        reporter.close()

    def test_create_default(self):
        """Test default creation."""
        reporter = RichProgressReporter()
        assert reporter._verbose is False
        assert reporter._quiet is False

    def test_progress_started_lazily(self, reporter):
        """Test that the bar only appears with the first snapshot."""
        assert reporter._progress is None

        reporter(ProgressSnapshot(total=4, processed=1, succeeded=1))

        assert reporter._progress is not None
        task = reporter._progress.tasks[0]
        assert task.total == 4
        assert task.completed == 1

    def test_updates_track_snapshot(self, reporter):
        reporter(ProgressSnapshot(total=3, processed=1, succeeded=1))
        reporter(ProgressSnapshot(total=3, processed=3, succeeded=2, failed=1))

        task = reporter._progress.tasks[0]
        assert task.completed == 3
        assert "1 failed" in task.description

    def test_verbose_shows_current_file(self, console):
        reporter = RichProgressReporter(verbose=True, console=console)

        reporter(ProgressSnapshot(total=1, processed=1, succeeded=1, current_file="song.mp3"))

        assert "song.mp3" in reporter._progress.tasks[0].description
        reporter.close()

    @pytest.mark.parametrize("name", ["song [/live].mp3", "song [remix].mp3", "[bold]x.mp3"])
    def test_bracketed_file_name_shown_verbatim(self, console, name):
        """Test that file names are never interpreted as Rich markup."""
        reporter = RichProgressReporter(verbose=True, console=console)

        reporter(ProgressSnapshot(total=1, processed=1, succeeded=1, current_file=name))

        description = reporter._progress.tasks[0].description
        assert name in Text.from_markup(description).plain
        reporter.close()

    def test_close_stops_progress(self, reporter):
        reporter(ProgressSnapshot(total=1))

        reporter.close()
        reporter.close()

        assert reporter._progress is None

    def test_quiet_ignores_updates(self, console):
        reporter = RichProgressReporter(quiet=True, console=console)

        reporter(ProgressSnapshot(total=1))
        reporter.print_summary(RunSummary(processed=1, succeeded=1, failed=0))
        reporter.print_analysis(LibraryStats(total_files=1))

        assert reporter._progress is None
        assert console.file.getvalue() == ""

    def test_print_analysis(self, reporter, console):
        """Test the library statistics table content."""
        stats = LibraryStats(
            total_files=3,
            total_size=3 * 1024 * 1024,
            unique_artists=2,
            unique_albums=2,
            unique_genres=1,
            earliest_year=1990,
            latest_year=2001,
            formats={".mp3": 2, ".flac": 1},
        )

        reporter.print_analysis(stats)

        output = console.file.getvalue()
        assert "Library Analysis" in output
        assert "3.00 MB" in output
        assert "1990 - 2001" in output
        assert ".flac" in output

    def test_print_analysis_without_years(self, reporter, console):
        reporter.print_analysis(LibraryStats())

        assert "Unknown" in console.file.getvalue()

    def test_print_summary(self, reporter, console):
        """Test the summary table content."""
        summary = RunSummary(processed=10, succeeded=9, failed=1, elapsed_seconds=2.0)

        reporter.print_summary(summary, {"moved": 9, "copied": 0, "failed": 1})

        output = console.file.getvalue()
        assert "Sort Completed" in output
        assert "Processed" in output
        assert "Moved" in output
        assert "5.0 files/sec" in output

    def test_print_summary_failed_run(self, reporter, console):
        reporter.print_summary(RunSummary(processed=0, succeeded=0, failed=0, state=EngineState.FAILED))

        assert "Sort Failed" in console.file.getvalue()

    def test_context_manager(self, console):
        with RichProgressReporter(console=console) as reporter:
            reporter(ProgressSnapshot(total=2, processed=2, succeeded=2))

        assert reporter._progress is None


class TestQuietProgressReporter:
    """Tests for quiet reporter."""

    def test_silent(self, capsys):
        reporter = QuietProgressReporter()

        with reporter:
            reporter(ProgressSnapshot(total=1))
            reporter.print_summary(RunSummary(processed=1, succeeded=1, failed=0))
            reporter.print_analysis(LibraryStats(total_files=1))

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""
