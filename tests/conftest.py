"""Pytest configuration and shared fixtures for kudump tests."""

import io
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from rich.console import Console

from kudump.client import GetPodError, ListError
from kudump.models import ContainerInfo, LogRequest, PodInfo
from kudump.ui import KudumpUI


# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers",
        "e2e: End-to-end tests requiring a real Kubernetes cluster",
    )


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Skip e2e tests unless explicitly requested."""
    if not config.getoption("-m", default=""):
        skip_e2e = pytest.mark.skip(
            reason="E2E tests require -m e2e flag and a real cluster"
        )
        for item in items:
            if "e2e" in item.keywords:
                item.add_marker(skip_e2e)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


COLLECTED_AT = datetime(2024, 1, 15, 10, 30, 5)
COLLECTED_STAMP = "20240115_103005"


@pytest.fixture
def collected_at() -> datetime:
    """Fixed local collection time."""
    return COLLECTED_AT


@pytest.fixture
def sample_pod_info() -> PodInfo:
    """Create a sample PodInfo with regular and init containers."""
    return PodInfo(
        namespace="default",
        name="frontend-abc123",
        phase="Running",
        containers=["nginx", "sidecar"],
        init_containers=["init-config", "migrate"],
    )


@pytest.fixture
def sample_single_container_pod() -> PodInfo:
    """Create a pod with a single container."""
    return PodInfo(
        namespace="default",
        name="web",
        phase="Running",
        containers=["web"],
    )


@pytest.fixture
def sample_container_info() -> ContainerInfo:
    """Create a sample ContainerInfo for testing."""
    return ContainerInfo(
        namespace="default",
        pod_name="frontend-abc123",
        container_name="nginx",
        container_type="regular",
    )


@pytest.fixture
def multiple_pods() -> list[PodInfo]:
    """Create multiple pods for testing."""
    return [
        PodInfo(
            namespace="default",
            name="pod-a",
            phase="Running",
            containers=["app", "worker"],
        ),
        PodInfo(
            namespace="default",
            name="pod-b",
            phase="Running",
            containers=["api", "istio-proxy"],
            init_containers=["istio-init"],
        ),
    ]


# ============================================================================
# UI Fixtures
# ============================================================================


@pytest.fixture
def ui() -> KudumpUI:
    """Create a UI writing to an in-memory buffer."""
    console = Console(file=io.StringIO(), width=200, color_system=None)
    return KudumpUI(console=console)


def ui_output(ui: KudumpUI) -> str:
    """Return everything printed to a test UI so far."""
    return ui.console.file.getvalue()


@pytest.fixture
def read_output():
    """Expose ui_output to tests."""
    return ui_output


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_k8s_api() -> MagicMock:
    """Create a mock Kubernetes CoreV1Api."""
    api = MagicMock()
    api.list_namespaced_pod = AsyncMock()
    api.read_namespaced_pod = AsyncMock()
    api.read_namespaced_pod_log = AsyncMock()
    return api


@pytest.fixture
def mock_api_client() -> MagicMock:
    """Create a mock API client."""
    client = MagicMock()
    client.close = AsyncMock()
    return client


class FakeLogStream:
    """Log stream yielding canned chunks, optionally failing at the end."""

    def __init__(self, chunks: list[bytes], error: Exception | None = None) -> None:
        self.chunks = chunks
        self.error = error

    async def iter_chunks(self, chunk_size: int = 65536) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


class FakeKudumpClient:
    """In-memory stand-in for KudumpClient.

    Records every API call so tests can assert ordering and absence of
    network activity.
    """

    def __init__(
        self,
        pods: list[PodInfo] | None = None,
        logs: dict[tuple[str, str], list[bytes]] | None = None,
        stream_errors: dict[tuple[str, str], Exception] | None = None,
        read_errors: dict[tuple[str, str], Exception] | None = None,
        missing_pods: set[str] | None = None,
        list_error: Exception | None = None,
        namespace: str = "default",
    ) -> None:
        self.pods = {pod.name: pod for pod in pods or []}
        self.logs = logs or {}
        self.stream_errors = stream_errors or {}
        self.read_errors = read_errors or {}
        self.missing_pods = missing_pods or set()
        self.list_error = list_error
        self.namespace = namespace
        self.calls: list[tuple] = []
        self.requests: list[LogRequest] = []
        self.closed: list[tuple[str, str]] = []

    async def resolve_namespace(self) -> str:
        self.calls.append(("resolve_namespace",))
        return self.namespace

    async def list_pods(self, namespace: str) -> list[PodInfo]:
        self.calls.append(("list_pods", namespace))
        if self.list_error is not None:
            raise self.list_error
        return list(self.pods.values())

    async def get_pod(self, namespace: str, name: str) -> PodInfo:
        self.calls.append(("get_pod", namespace, name))
        if name in self.missing_pods or name not in self.pods:
            raise GetPodError(f"Pod {namespace}/{name} not found")
        return self.pods[name]

    @asynccontextmanager
    async def open_log_stream(
        self,
        namespace: str,
        request: LogRequest,
    ) -> AsyncIterator[FakeLogStream]:
        key = (request.pod_name, request.container_name)
        self.calls.append(("open_log_stream", namespace, *key))
        self.requests.append(request)

        if key in self.stream_errors:
            raise self.stream_errors[key]

        stream = FakeLogStream(
            self.logs.get(key, [f"log of {key[1]}\n".encode()]),
            self.read_errors.get(key),
        )
        try:
            yield stream
        finally:
            self.closed.append(key)


@pytest.fixture
def fake_client_cls() -> type[FakeKudumpClient]:
    """Expose the fake client class to tests."""
    return FakeKudumpClient


@pytest.fixture
def list_error() -> ListError:
    """A namespace listing failure."""
    return ListError("Namespace 'missing' not found")
