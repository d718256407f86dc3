"""Sequential log collector.

This module coordinates a collection pass:
- Output directory creation, once, before any API call
- Per-pod lookup and container resolution
- Per-container log streaming into timestamped files

Pods and containers are processed one at a time. A failure for one pod or
container is reported as a warning and never stops the rest of the batch.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from kudump.client import GetPodError, KudumpClient, KudumpError, StreamError
from kudump.models import (
    CollectionConfig,
    CollectionReport,
    ContainerInfo,
    ContainerResult,
    PodInfo,
)
from kudump.utils import build_log_filename, format_log_header, seconds_since


if TYPE_CHECKING:
    from kudump.ui import KudumpUI


logger = logging.getLogger(__name__)


class WriteError(KudumpError):
    """Raised when the output directory or a log file cannot be written."""

    pass


class LogCollector:
    """Writes container logs of a batch of pods to local files.

    Attributes:
        client: The KudumpClient for Kubernetes operations.
        ui: The console UI used for progress and warnings.

    Example:
        async with KudumpClient.create() as client:
            collector = LogCollector(client, KudumpUI())
            report = await collector.collect_all(config)
    """

    def __init__(
        self,
        client: KudumpClient,
        ui: "KudumpUI",
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the collector.

        Args:
            client: The KudumpClient instance for K8s operations.
            ui: The UI instance for progress and warnings.
            clock: Source of the local collection time.
        """
        self.client = client
        self.ui = ui
        self.clock = clock

    async def collect_all(self, config: CollectionConfig) -> CollectionReport:
        """Collect the logs of every configured pod.

        Args:
            config: The collection configuration.

        Returns:
            A report of every attempted container and every skipped pod.

        Raises:
            WriteError: If the output directory cannot be created. Nothing
                has been requested from the API at that point.
        """
        ensure_output_dir(config.output_dir)

        report = CollectionReport()

        for pod_name in config.pod_names:
            self.ui.print_collecting(pod_name)

            try:
                pod = await self.client.get_pod(config.namespace, pod_name)
            except GetPodError as e:
                self.ui.print_pod_failure(pod_name, str(e))
                report.skipped_pods.append(pod_name)
                continue

            for container in resolve_containers(pod, config.container_name):
                report.results.append(await self._collect_container(config, pod, container))

        return report

    async def collect_since(
        self,
        namespace: str,
        pod_names: list[str],
        output_dir: Path,
        since: datetime,
    ) -> CollectionReport:
        """Collect logs written after an absolute point in time.

        Timestamps are enabled and every container is collected.

        Args:
            namespace: The namespace containing the pods.
            pod_names: Pods to collect.
            output_dir: Directory the log files are written to.
            since: Earliest log time, in local time.

        Returns:
            The collection report.
        """
        config = CollectionConfig(
            namespace=namespace,
            pod_names=tuple(pod_names),
            output_dir=output_dir,
            since_seconds=seconds_since(since, self.clock()),
            timestamps=True,
            follow=False,
        )
        return await self.collect_all(config)

    async def collect_one(
        self,
        config: CollectionConfig,
        pod: PodInfo,
        container: ContainerInfo,
    ) -> Path:
        """Stream the logs of one container into a new file.

        Args:
            config: The collection configuration.
            pod: The pod owning the container.
            container: The container to collect.

        Returns:
            The path of the written log file.

        Raises:
            StreamError: If the stream cannot be opened or breaks mid-copy.
            WriteError: If the file cannot be created or written.
        """
        request = config.log_request(pod.name, container.container_name)

        async with self.client.open_log_stream(config.namespace, request) as stream:
            collected_at = self.clock()
            filename = build_log_filename(
                pod.name,
                container.container_name,
                pod.container_count,
                collected_at,
            )
            path = config.output_dir / filename

            try:
                with path.open("wb") as log_file:
                    log_file.write(format_log_header(pod.name, container.container_name, collected_at))

                    written = 0
                    async for chunk in stream.iter_chunks():
                        log_file.write(chunk)
                        written += len(chunk)
            except OSError as e:
                raise WriteError(f"failed to write log file {path}: {e}") from e

        logger.debug(f"Wrote {written} bytes for {container.unique_id} to {path}")
        return path

    async def _collect_container(
        self,
        config: CollectionConfig,
        pod: PodInfo,
        container: ContainerInfo,
    ) -> ContainerResult:
        """Collect one container and turn failures into a warning."""
        try:
            path = await self.collect_one(config, pod, container)
        except (StreamError, WriteError) as e:
            self.ui.print_container_failure(container, str(e))
            return ContainerResult(container=container, error=str(e))

        self.ui.print_saved(path)
        return ContainerResult(container=container, path=path)


def ensure_output_dir(output_dir: Path) -> None:
    """Create the output directory and its parents if missing.

    Raises:
        WriteError: If the directory cannot be created, e.g. because a
            regular file already occupies the path.
    """
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WriteError(f"failed to create output directory {output_dir}: {e}") from e


def resolve_containers(pod: PodInfo, container_name: str = "") -> list[ContainerInfo]:
    """Resolve the containers to collect for a pod.

    Args:
        pod: The pod.
        container_name: A single container to collect; empty for all.

    Returns:
        The named container alone, unchecked against the pod spec, or the
        regular containers followed by the init containers.
    """
    if not container_name:
        return pod.get_all_containers()

    container_type = "init" if container_name in pod.init_containers else "regular"
    return [
        ContainerInfo(
            namespace=pod.namespace,
            pod_name=pod.name,
            container_name=container_name,
            container_type=container_type,
        )
    ]
