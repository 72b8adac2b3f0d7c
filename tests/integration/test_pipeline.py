"""End-to-end tests for the drift pipeline.

Each test exercises: list pods -> concurrent fetch -> normalize -> compare,
against a fake lister and a fake exec transport.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from conftest import NGINX_CONF, conf_with_timestamp, make_pod, terminated

from ngxdrift.errors import ConfigurationError, ContainerNotFoundError, DriftDetectedError, RemoteCommandError
from ngxdrift.kube.executor import ExecResult
from ngxdrift.models.drift import PipelineState

pytestmark = pytest.mark.integration


# ---------------------------------------------------------------------------
# Verdicts
# ---------------------------------------------------------------------------


class TestVerdicts:
    async def test_extra_directive_on_one_pod_is_drift(self, make_pipeline) -> None:
        """Pods A and B match; C carries an extra directive outside any comment."""
        drifted = NGINX_CONF.replace("\tsendfile on;\n", "\tsendfile on;\n\tserver_tokens off;\n")
        pipeline, _, _ = make_pipeline({"nginx-a": NGINX_CONF, "nginx-b": NGINX_CONF, "nginx-c": drifted})

        verdict = await pipeline.run()

        assert verdict.drifted is True
        assert verdict.pair is not None
        assert "nginx-c" in verdict.pair
        assert set(verdict.pair) & {"nginx-a", "nginx-b"}
        assert pipeline.state == PipelineState.DRIFT_DETECTED
        with pytest.raises(DriftDetectedError):
            verdict.raise_for_drift()

    async def test_extra_content_only_in_comment_is_not_drift(self, make_pipeline) -> None:
        commented = NGINX_CONF.replace("\tsendfile on;\n", "\tsendfile on;\n\t# server_tokens off;\n")
        pipeline, _, _ = make_pipeline({"nginx-a": NGINX_CONF, "nginx-b": NGINX_CONF, "nginx-c": commented})

        verdict = await pipeline.run()

        assert verdict.drifted is False
        assert verdict.pods_checked == 3
        assert pipeline.state == PipelineState.NO_DRIFT

    async def test_different_render_timestamps_are_not_drift(self, make_pipeline) -> None:
        pipeline, _, _ = make_pipeline(
            {
                "nginx-a": conf_with_timestamp("Tue 10:00"),
                "nginx-b": conf_with_timestamp("Tue 10:01"),
                "nginx-c": conf_with_timestamp("Wed 08:30"),
            }
        )
        assert (await pipeline.run()).drifted is False

    async def test_no_pods_is_no_drift(self, make_pipeline, progress_lines) -> None:
        pipeline, _, executor = make_pipeline({})

        verdict = await pipeline.run()

        assert verdict.drifted is False
        assert verdict.pods_checked == 0
        assert executor.calls == []
        assert "checking configuration drift..." in progress_lines

    async def test_single_pod_is_no_drift(self, make_pipeline) -> None:
        pipeline, _, _ = make_pipeline({"nginx-a": NGINX_CONF})
        assert (await pipeline.run()).drifted is False

    async def test_progress_lines_in_order(self, make_pipeline, progress_lines) -> None:
        pipeline, _, _ = make_pipeline({"nginx-a": NGINX_CONF, "nginx-b": NGINX_CONF})
        await pipeline.run()
        assert progress_lines == [
            "downloading configuration...",
            "formatting nginx configuration files to avoid false positives...",
            "checking configuration drift...",
        ]


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    async def test_transport_error_aborts_before_comparison(self, make_pipeline, progress_lines) -> None:
        """A pod terminated mid-exec fails the run; the comparator never runs."""
        pipeline, _, _ = make_pipeline(
            {"nginx-a": NGINX_CONF, "nginx-b": terminated("nginx-b"), "nginx-c": NGINX_CONF + "extra;\n"}
        )

        with patch("ngxdrift.drift.pipeline.compare") as compare:
            with pytest.raises(RemoteCommandError, match="pod terminated"):
                await pipeline.run()

        compare.assert_not_called()
        assert pipeline.state == PipelineState.FAILED
        assert "checking configuration drift..." not in progress_lines

    async def test_stderr_with_no_error_fails_the_run(self, make_pipeline) -> None:
        pipeline, _, _ = make_pipeline(
            {
                "nginx-a": NGINX_CONF,
                "nginx-b": ExecResult(stdout="", stderr="cat: can't open '/etc/nginx/nginx.conf'\n"),
            }
        )

        with pytest.raises(RemoteCommandError, match="can't open") as excinfo:
            await pipeline.run()
        assert excinfo.value.pod == "nginx-b"

    async def test_missing_container_fails_the_run(self, make_pipeline) -> None:
        pods = [make_pod("nginx-a", ("controller", "sidecar")), make_pod("nginx-b", ("controller",))]
        pipeline, _, executor = make_pipeline(
            {"nginx-a": NGINX_CONF, "nginx-b": NGINX_CONF}, pods=pods, container="sidecar"
        )

        with pytest.raises(ContainerNotFoundError) as excinfo:
            await pipeline.run()

        assert excinfo.value.pod == "nginx-b"
        assert [call[0] for call in executor.calls] == ["nginx-a"]

    async def test_in_flight_fetches_are_drained_not_cancelled(self, make_pipeline) -> None:
        pipeline, _, executor = make_pipeline(
            {"nginx-a": terminated("nginx-a"), "nginx-b": NGINX_CONF, "nginx-c": NGINX_CONF},
            delays={"nginx-a": 0, "nginx-b": 0.05, "nginx-c": 0.1},
        )

        with pytest.raises(RemoteCommandError):
            await pipeline.run()

        assert sorted(executor.completed) == ["nginx-a", "nginx-b", "nginx-c"]

    async def test_first_observed_failure_is_reported(self, make_pipeline) -> None:
        """Failure order follows completion, not pod-list order."""
        pipeline, _, _ = make_pipeline(
            {"nginx-a": terminated("nginx-a"), "nginx-b": terminated("nginx-b")},
            delays={"nginx-a": 0.1, "nginx-b": 0},
        )

        with pytest.raises(RemoteCommandError) as excinfo:
            await pipeline.run()
        assert excinfo.value.pod == "nginx-b"

    async def test_hung_fetch_hits_deadline(self, make_pipeline) -> None:
        pipeline, _, _ = make_pipeline(
            {"nginx-a": NGINX_CONF, "nginx-b": NGINX_CONF},
            delays={"nginx-b": 5},
            timeout=0.05,
        )

        with pytest.raises(RemoteCommandError, match="timed out") as excinfo:
            await pipeline.run()
        assert excinfo.value.pod == "nginx-b"


# ---------------------------------------------------------------------------
# Concurrency and container selection
# ---------------------------------------------------------------------------


class TestFanOut:
    async def test_lister_called_once_and_every_pod_fetched_once(self, make_pipeline) -> None:
        names = [f"nginx-{i}" for i in range(20)]
        pipeline, lister, executor = make_pipeline(dict.fromkeys(names, NGINX_CONF))

        await pipeline.run()

        assert lister.calls == 1
        assert sorted(call[0] for call in executor.calls) == sorted(names)

    async def test_fetches_run_concurrently(self, make_pipeline) -> None:
        """With equal delays every fetch starts before any finishes."""
        names = ["nginx-a", "nginx-b", "nginx-c"]
        pipeline, _, executor = make_pipeline(
            dict.fromkeys(names, NGINX_CONF), delays=dict.fromkeys(names, 0.05)
        )

        await pipeline.run()

        assert executor.max_in_flight == 3

    async def test_default_container_is_first_in_spec(self, make_pipeline) -> None:
        pods = [make_pod("nginx-a", ("controller", "sidecar")), make_pod("nginx-b", ("controller", "sidecar"))]
        pipeline, _, executor = make_pipeline({"nginx-a": NGINX_CONF, "nginx-b": NGINX_CONF}, pods=pods)

        await pipeline.run()

        assert {call[1] for call in executor.calls} == {"controller"}
        assert {tuple(call[2]) for call in executor.calls} == {("cat", "/etc/nginx/nginx.conf")}

    async def test_named_container_is_used(self, make_pipeline) -> None:
        pods = [make_pod("nginx-a", ("controller", "sidecar"))]
        pipeline, _, executor = make_pipeline({"nginx-a": NGINX_CONF}, pods=pods, container="sidecar")

        await pipeline.run()

        assert executor.calls[0][1] == "sidecar"


class TestDump:
    async def test_raw_configuration_written_per_pod(self, make_pipeline, tmp_path: Path) -> None:
        dump_dir = tmp_path / "confs"
        pipeline, _, _ = make_pipeline(
            {"nginx-a": conf_with_timestamp("Mon"), "nginx-b": conf_with_timestamp("Tue")},
            dump_dir=str(dump_dir),
        )

        await pipeline.run()

        assert (dump_dir / "nginx-a.conf").read_text() == conf_with_timestamp("Mon")
        assert (dump_dir / "nginx-b.conf").read_text() == conf_with_timestamp("Tue")

    async def test_unwritable_dump_dir_fails_the_run(self, make_pipeline, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        pipeline, _, _ = make_pipeline({"nginx-a": NGINX_CONF}, dump_dir=str(blocker))

        with pytest.raises(ConfigurationError, match="cannot write"):
            await pipeline.run()
        assert pipeline.state == PipelineState.FAILED

    async def test_earlier_fetch_failure_wins_over_later_dump_failure(self, make_pipeline, tmp_path: Path) -> None:
        """nginx-a is first in pod order but its dump fails after nginx-b's fetch already failed."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        pipeline, _, _ = make_pipeline(
            {"nginx-a": NGINX_CONF, "nginx-b": terminated("nginx-b")},
            delays={"nginx-a": 0.05, "nginx-b": 0},
            dump_dir=str(blocker),
        )

        with pytest.raises(RemoteCommandError) as excinfo:
            await pipeline.run()
        assert excinfo.value.pod == "nginx-b"
