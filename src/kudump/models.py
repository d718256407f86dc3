"""Data models for kudump.

This module contains the dataclasses passed between the client, the
collector and the UI.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal


ContainerType = Literal["regular", "init"]


@dataclass(frozen=True, slots=True)
class ContainerInfo:
    """Information about a specific container within a pod.

    Attributes:
        namespace: The Kubernetes namespace containing the pod.
        pod_name: The name of the pod.
        container_name: The name of the container.
        container_type: The type of container (regular or init).
    """

    namespace: str
    pod_name: str
    container_name: str
    container_type: ContainerType

    @property
    def unique_id(self) -> str:
        """Return a unique identifier for this container."""
        return f"{self.namespace}/{self.pod_name}/{self.container_name}"


@dataclass(frozen=True, slots=True)
class PodInfo:
    """Information about a Kubernetes pod and its containers.

    Attributes:
        namespace: The Kubernetes namespace containing the pod.
        name: The name of the pod.
        phase: The current phase of the pod (Running, Pending, etc.).
        containers: Regular container names, in declaration order.
        init_containers: Init container names, in declaration order.
    """

    namespace: str
    name: str
    phase: str
    containers: list[str] = field(default_factory=list)
    init_containers: list[str] = field(default_factory=list)

    @property
    def container_count(self) -> int:
        """Return the number of regular and init containers."""
        return len(self.containers) + len(self.init_containers)

    def get_all_containers(self) -> list[ContainerInfo]:
        """Get regular containers followed by init containers.

        Returns:
            List of ContainerInfo objects, each group in declaration order.
        """
        result: list[ContainerInfo] = []

        for name in self.containers:
            result.append(
                ContainerInfo(
                    namespace=self.namespace,
                    pod_name=self.name,
                    container_name=name,
                    container_type="regular",
                )
            )

        for name in self.init_containers:
            result.append(
                ContainerInfo(
                    namespace=self.namespace,
                    pod_name=self.name,
                    container_name=name,
                    container_type="init",
                )
            )

        return result


@dataclass(frozen=True, slots=True)
class LogRequest:
    """Parameters of a single container log request.

    Attributes:
        pod_name: The name of the pod.
        container_name: The name of the container.
        follow: Whether to follow the stream.
        previous: Whether to read the previous container instance.
        timestamps: Whether the API should prefix lines with timestamps.
        tail_lines: Number of most recent lines, or None for all.
        since_seconds: Relative time window, or None for no lower bound.
    """

    pod_name: str
    container_name: str
    follow: bool = False
    previous: bool = False
    timestamps: bool = False
    tail_lines: int | None = None
    since_seconds: int | None = None

    def to_api_kwargs(self, namespace: str) -> dict[str, Any]:
        """Render keyword arguments for ``read_namespaced_pod_log``.

        Unset optional fields are left out so the API applies no limit.
        """
        kwargs: dict[str, Any] = {
            "name": self.pod_name,
            "namespace": namespace,
            "container": self.container_name,
            "follow": self.follow,
            "previous": self.previous,
            "timestamps": self.timestamps,
            "_preload_content": False,
        }

        if self.tail_lines is not None:
            kwargs["tail_lines"] = self.tail_lines

        if self.since_seconds is not None:
            kwargs["since_seconds"] = self.since_seconds

        return kwargs


@dataclass(frozen=True, slots=True)
class CollectionConfig:
    """Configuration for one log collection pass.

    Attributes:
        namespace: The namespace the pods live in.
        pod_names: Pods to collect, in order.
        output_dir: Directory the log files are written to.
        tail_lines: Number of most recent lines per container, or None.
        follow: Whether to follow the log streams.
        previous: Whether to read the previous container instances.
        since_seconds: Relative time window in seconds, or None.
        timestamps: Whether the API should prefix lines with timestamps.
        container_name: Single container to collect; empty for all.
    """

    namespace: str
    pod_names: tuple[str, ...] = ()
    output_dir: Path = Path("./pod-logs")
    tail_lines: int | None = None
    follow: bool = False
    previous: bool = False
    since_seconds: int | None = None
    timestamps: bool = False
    container_name: str = ""

    def __post_init__(self) -> None:
        if not self.namespace:
            raise ValueError("Namespace cannot be empty")
        if self.tail_lines is not None and self.tail_lines <= 0:
            raise ValueError(f"Tail lines must be positive, got: {self.tail_lines}")
        if self.since_seconds is not None and self.since_seconds < 0:
            raise ValueError(
                f"Since seconds must be non-negative, got: {self.since_seconds}"
            )
        # Accept any iterable of names but store an immutable tuple
        object.__setattr__(self, "pod_names", tuple(self.pod_names))
        object.__setattr__(self, "output_dir", Path(self.output_dir))

    def log_request(self, pod_name: str, container_name: str) -> LogRequest:
        """Build the log request for one container of one pod."""
        return LogRequest(
            pod_name=pod_name,
            container_name=container_name,
            follow=self.follow,
            previous=self.previous,
            timestamps=self.timestamps,
            tail_lines=self.tail_lines,
            since_seconds=self.since_seconds,
        )


@dataclass(frozen=True, slots=True)
class ContainerResult:
    """Outcome of one container collection attempt.

    Attributes:
        container: The container that was collected.
        path: The written log file, or None if nothing was saved.
        error: The failure message, or None on success.
    """

    container: ContainerInfo
    path: Path | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Return True if the log file was written completely."""
        return self.error is None


@dataclass(slots=True)
class CollectionReport:
    """Aggregated outcome of a collection pass."""

    results: list[ContainerResult] = field(default_factory=list)
    skipped_pods: list[str] = field(default_factory=list)

    @property
    def saved(self) -> int:
        """Return the number of containers whose logs were saved."""
        return sum(1 for result in self.results if result.ok)

    @property
    def failed(self) -> int:
        """Return the number of containers that failed."""
        return sum(1 for result in self.results if not result.ok)
