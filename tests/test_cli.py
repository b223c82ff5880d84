"""End-to-end tests for the command-line entry point with Kubernetes faked out."""

import pytest

import klog.cli as cli
from conftest import FakeCore, FakeStream, make_pod
from klog.exceptions import KubernetesConnectionError, LogStreamError
from klog.kube import KubeContext


@pytest.fixture(autouse=True)
def plain_terminal(monkeypatch):
    monkeypatch.delenv("FORCE_COLOR", raising=False)
    monkeypatch.delenv("KLOG_NAMESPACE", raising=False)
    monkeypatch.delenv("KLOG_MAX_CONCURRENCY", raising=False)


@pytest.fixture
def cluster(monkeypatch):
    """Fake cluster; set ``streams[pod_name]`` to the lines or error each pod returns."""
    core = FakeCore(pods=[
        make_pod("api-1", "prod"),
        make_pod("api-12", "prod"),
        make_pod("worker-0", "prod", containers=("main", "sidecar")),
    ])
    streams = {}
    calls = []

    async def fake_load_kube(kubeconfig, context):
        return KubeContext(core)

    def fake_open_log_stream(core_, pod, container, options):
        calls.append((pod.name, container, options))
        lines = streams.get(pod.name, [])
        if isinstance(lines, Exception):
            raise lines
        return FakeStream(lines)

    monkeypatch.setattr(cli, "load_kube", fake_load_kube)
    monkeypatch.setattr(cli, "open_log_stream", fake_open_log_stream)
    core.streams = streams
    core.calls = calls
    return core


def exit_code(argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    return exc.value.code


class TestBuildParser:
    """Tests for build_parser()."""

    def test_defaults(self):
        args = cli.build_parser().parse_args(["api"])
        assert args.pod == "api"
        assert args.namespace is None
        assert args.max_concurrency == 10
        assert not args.no_timestamp and not args.no_follow and not args.all_pods

    def test_env_defaults(self, monkeypatch):
        monkeypatch.setenv("KLOG_NAMESPACE", "prod")
        monkeypatch.setenv("KLOG_MAX_CONCURRENCY", "4")
        args = cli.build_parser().parse_args(["api"])
        assert args.namespace == "prod"
        assert args.max_concurrency == 4

    def test_invalid_env_falls_back(self, monkeypatch):
        monkeypatch.setenv("KLOG_MAX_CONCURRENCY", "many")
        assert cli.build_parser().parse_args(["api"]).max_concurrency == 10


class TestExitCodes:
    """Tests for the exit codes of main()."""

    def test_missing_pod_argument(self):
        assert exit_code([]) == 128

    def test_invalid_pod_pattern(self):
        assert exit_code(["api-["]) == 2

    def test_invalid_concurrency(self):
        assert exit_code(["api", "--max-concurrency", "0"]) == 2

    def test_connection_failure(self, monkeypatch):
        async def broken(kubeconfig, context):
            raise KubernetesConnectionError("no kubeconfig")
        monkeypatch.setattr(cli, "load_kube", broken)
        assert exit_code(["api"]) == 1

    def test_no_matching_pod(self, cluster):
        assert exit_code(["^db-"]) == 1

    def test_missing_namespace(self, cluster):
        assert exit_code(["api", "-n", "staging"]) == 1

    def test_single_pod_stream_failure(self, cluster):
        cluster.streams["api-1"] = LogStreamError("api-1", "cannot open log (404 Not Found)")
        assert exit_code(["api-1"]) == 1


class TestStreaming:
    """Tests for single-pod and all-pods runs."""

    def test_single_pod(self, cluster, capsys):
        cluster.streams["api-1"] = ["2024-01-01T00:00:00.000000000Z level=error boom"]
        cli.main(["api-1", "--no-color"])
        out = capsys.readouterr()
        assert out.out.splitlines() == ["2024-01-01T00:00:00.000 level=error boom"]
        assert "container 'app'" in out.err
        name, container, options = cluster.calls[0]
        assert (name, container) == ("api-1", "app")
        assert options.follow and options.timestamps

    def test_single_pod_options(self, cluster, capsys):
        cluster.streams["api-1"] = ["plain line"]
        cli.main(["api-1", "--no-color", "--no-timestamp", "--no-follow", "-p", "-s", "2", "-t", "10"])
        assert capsys.readouterr().out.splitlines() == ["plain line"]
        options = cluster.calls[0][2]
        assert not options.follow and not options.timestamps and options.previous
        assert options.since_hours == 2 and options.tail_lines == 10

    def test_keyword_only(self, cluster, capsys):
        cluster.streams["api-1"] = ["x timeout", "y fine", "z timeout again"]
        cli.main(["api-1", "--no-color", "--no-timestamp", "-k", "timeout", "--keyword-only"])
        assert capsys.readouterr().out.splitlines() == ["x timeout", "z timeout again"]

    def test_container_prompt_is_skipped_with_flag(self, cluster, capsys):
        cluster.streams["worker-0"] = ["ready"]
        cli.main(["worker", "-c", "sidecar", "--no-color", "--no-timestamp"])
        assert cluster.calls[0][:2] == ("worker-0", "sidecar")

    def test_all_pods(self, cluster, capsys):
        cluster.streams["api-1"] = ["one"]
        cluster.streams["api-12"] = ["twelve"]
        cli.main(["^api-", "--all-pods", "--no-color", "--no-timestamp"])
        out = capsys.readouterr().out.splitlines()
        assert sorted(out) == ["[api-12] twelve", "[api-1] one"]

    def test_all_pods_partial_failure(self, cluster, capsys):
        cluster.streams["api-1"] = LogStreamError("api-1", "cannot open log (500 Internal)")
        cluster.streams["api-12"] = ["twelve"]
        cli.main(["^api-", "--all-pods", "--no-color", "--no-timestamp"])
        assert capsys.readouterr().out.splitlines() == ["[api-12] twelve"]

    def test_all_pods_total_failure(self, cluster):
        cluster.streams["api-1"] = LogStreamError("api-1", "boom")
        cluster.streams["api-12"] = LogStreamError("api-12", "boom")
        assert exit_code(["^api-", "--all-pods", "--no-timestamp"]) == 1
