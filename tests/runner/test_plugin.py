"""Tests for the pytest plugin: sharding, focusing, projects and statuses.

Behavioural tests run an inner pytest session through ``pytester`` with the
plugin loaded explicitly.
"""

import asyncio
import json

import pytest
from unittest.mock import MagicMock
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from e2e_framework.plugin import is_timeout, item_failed, parse_shard, select_shard

PLUGIN = "e2e_framework.plugin"


@pytest.fixture
def inner(pytester, monkeypatch):
    """pytester with a clean environment for the inner session."""
    for name in ("CI", "TEST_ENV", "ARCHIVE_RESULTS", "ENABLE_NOTIFICATIONS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(pytester.path / "home"))
    return pytester


def run(pytester, *args):
    return pytester.runpytest("-p", PLUGIN, "--no-custom-report", *args)


class TestShardHelpers:
    """Tests for parse_shard and select_shard."""

    @pytest.mark.parametrize("value,expected", [("1/1", (1, 1)), ("2/4", (2, 4))])
    def test_parse_shard(self, value, expected):
        """Valid shards parse into (index, total)."""
        assert parse_shard(value) == expected

    @pytest.mark.parametrize("value", ["0/2", "3/2", "1/0", "a/b", "2", "1/2/3"])
    def test_parse_invalid_shard(self, value):
        """Malformed or out of range shards raise ValueError."""
        with pytest.raises(ValueError, match="Invalid shard"):
            parse_shard(value)

    def test_shards_partition_items(self):
        """Every item lands in exactly one shard."""
        items = list(range(7))

        shards = [select_shard(items, index, 3)[0] for index in (1, 2, 3)]

        assert shards == [[0, 3, 6], [1, 4], [2, 5]]
        assert select_shard(items, 2, 3)[1] == [0, 2, 3, 5, 6]


class TestFailureHelpers:
    """Tests for is_timeout and item_failed."""

    def test_is_timeout(self):
        """Playwright and asyncio timeouts are timeouts."""
        assert is_timeout(MagicMock(value=PlaywrightTimeoutError("Timeout 30000ms exceeded")))
        assert is_timeout(MagicMock(value=asyncio.TimeoutError()))
        assert not is_timeout(MagicMock(value=AssertionError("nope")))
        assert not is_timeout(None)

    def test_item_failed(self):
        """Setup or call failures count, missing reports do not."""
        item = MagicMock(spec=["rep_setup", "rep_call"])
        item.rep_setup = MagicMock(failed=False)
        item.rep_call = MagicMock(failed=True)

        assert item_failed(item) is True
        assert item_failed(MagicMock(spec=[])) is False


class TestInnerSessions:
    """Behaviour of the plugin inside a pytest session."""

    def test_sharding(self, inner):
        """--shard runs a round-robin subset and deselects the rest."""
        inner.makepyfile(
            """
            def test_a(): pass
            def test_b(): pass
            def test_c(): pass
            def test_d(): pass
            """
        )

        result = run(inner, "--shard=2/2", "-v")

        result.assert_outcomes(passed=2, deselected=2)
        result.stdout.fnmatch_lines(["*test_b PASSED*", "*test_d PASSED*"])

    def test_invalid_shard_is_usage_error(self, inner):
        """A malformed shard stops the run."""
        inner.makepyfile("def test_a(): pass")

        result = run(inner, "--shard=3/2")

        assert result.ret == pytest.ExitCode.USAGE_ERROR

    def test_only_focuses_run(self, inner):
        """Tests marked only are the only ones run."""
        inner.makepyfile(
            """
            import pytest

            @pytest.mark.only
            def test_focused(): pass

            def test_other(): pass
            """
        )

        run(inner).assert_outcomes(passed=1, deselected=1)

    def test_only_forbidden_on_ci(self, inner, monkeypatch):
        """On CI a focused test is a usage error."""
        monkeypatch.setenv("CI", "true")
        inner.makepyfile(
            """
            import pytest

            @pytest.mark.only
            def test_focused(): pass
            """
        )

        result = run(inner)

        assert result.ret == pytest.ExitCode.USAGE_ERROR
        result.stderr.fnmatch_lines(["*not allowed on CI*"])

    def test_expected_fail(self, inner):
        """expected_fail turns failures into xfail and passes into xpass."""
        inner.makepyfile(
            """
            import pytest

            @pytest.mark.expected_fail(reason="long queries are rejected")
            def test_fails(): assert False

            @pytest.mark.expected_fail
            def test_passes(): pass
            """
        )

        run(inner).assert_outcomes(xfailed=1, xpassed=1)

    def test_project_markers_filter(self, inner):
        """The api project only runs api tests."""
        inner.makepyfile(
            """
            import pytest

            @pytest.mark.api
            def test_endpoint(): pass

            def test_page(): pass
            """
        )

        run(inner, "--project", "api").assert_outcomes(passed=1, deselected=1)

    def test_unknown_project(self, inner):
        """Unknown projects are usage errors."""
        inner.makepyfile("def test_a(): pass")

        result = run(inner, "--project", "opera")

        assert result.ret == pytest.ExitCode.USAGE_ERROR

    def test_custom_report_records(self, inner):
        """The custom reporter records project, tags and timeouts."""
        inner.makepyfile(
            """
            import asyncio
            import pytest

            @pytest.mark.smoke
            def test_ok(): pass

            def test_slow():
                raise asyncio.TimeoutError()

            def test_broken():
                assert 1 == 2
            """
        )

        result = inner.runpytest("-p", PLUGIN, "--project", "firefox")

        result.assert_outcomes(passed=1, failed=2)
        report_dir = inner.path / "test-results" / "custom-reports"
        report = json.loads((report_dir / "report.json").read_text())
        by_title = {r["title"]: r for r in report["results"]}
        assert by_title["test_ok"]["status"] == "passed"
        assert by_title["test_ok"]["project_name"] == "firefox"
        assert "smoke" in by_title["test_ok"]["tags"]
        assert by_title["test_slow"]["status"] == "timedOut"
        assert by_title["test_broken"]["status"] == "failed"
        assert "assert 1 == 2" in by_title["test_broken"]["error"]
        assert report["summary"]["failed"] == 2
        assert (report_dir / "report.html").exists()
        assert (report_dir / "report.csv").exists()
        assert (report_dir / "metrics.json").exists()

    def test_global_setup_creates_directories(self, inner):
        """Artifact directories exist once the session starts."""
        inner.makepyfile("def test_a(): pass")

        run(inner)

        for name in ("screenshots", "videos", "downloads", "traces"):
            assert (inner.path / "test-results" / name).is_dir()

    def test_report_dir_option(self, inner):
        """--report-dir sends the custom reports to the given directory."""
        inner.makepyfile("def test_a(): pass")

        inner.runpytest("-p", PLUGIN, "--report-dir", "out/reports/webkit")

        assert (inner.path / "out" / "reports" / "webkit" / "report.json").exists()
        assert not (inner.path / "test-results" / "custom-reports" / "report.json").exists()

    def test_expect_timeout_applied(self, inner, monkeypatch):
        """The configured assertion timeout becomes Playwright's expect default."""
        monkeypatch.setenv("E2E_EXPECT_TIMEOUT", "1234")
        fake_expect = MagicMock()
        monkeypatch.setattr("e2e_framework.plugin.expect", fake_expect)
        inner.makepyfile("def test_a(): pass")

        run(inner).assert_outcomes(passed=1)

        fake_expect.set_options.assert_called_with(timeout=1234)

    def test_archive_includes_custom_reports(self, inner, monkeypatch):
        """Reports are written before the results directory is archived."""
        monkeypatch.setenv("ARCHIVE_RESULTS", "true")
        inner.makepyfile("def test_a(): pass")

        inner.runpytest("-p", PLUGIN)

        archived = list((inner.path / "archived-results").glob("*/custom-reports/report.json"))
        assert len(archived) == 1
