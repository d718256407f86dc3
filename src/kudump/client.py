"""Asynchronous Kubernetes client wrapper for kudump.

This module provides a thin async interface for the Kubernetes operations
kudump needs:
- Resolving credentials (in-cluster service account, then kubeconfig)
- Listing and reading pods
- Opening raw container log streams

Uses kubernetes_asyncio for async I/O operations.
"""

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Self

import aiohttp
from kubernetes_asyncio import client, config
from kubernetes_asyncio.client import ApiException
from kubernetes_asyncio.config import ConfigException

from kudump.models import LogRequest, PodInfo


logger = logging.getLogger(__name__)

# Mounted into every pod that runs with a service account
SERVICE_ACCOUNT_NAMESPACE_PATH = Path(
    "/var/run/secrets/kubernetes.io/serviceaccount/namespace"
)

DEFAULT_NAMESPACE = "default"

# Bytes read from a log stream per iteration
STREAM_CHUNK_SIZE = 64 * 1024


class KudumpError(Exception):
    """Base exception for kudump errors."""

    pass


class KudumpClientError(KudumpError):
    """Base exception for Kubernetes API errors."""

    pass


class ConfigError(KudumpClientError):
    """Raised when no credentials resolve or the client cannot be built."""

    pass


class ListError(KudumpClientError):
    """Raised when the pods of a namespace cannot be listed."""

    pass


class GetPodError(KudumpClientError):
    """Raised when a single pod cannot be read."""

    pass


class StreamError(KudumpClientError):
    """Raised when a log stream cannot be opened or read."""

    pass


def default_kubeconfig_path() -> str:
    """Return the kubeconfig location used when none is given.

    Honours ``$KUBECONFIG`` (which may hold several paths) and falls back
    to ``~/.kube/config``.
    """
    env_path = os.environ.get("KUBECONFIG")
    if env_path:
        return env_path
    return str(Path.home() / ".kube" / "config")


def get_pod_names(pods: list[PodInfo]) -> list[str]:
    """Return the names of the given pods, in order."""
    return [pod.name for pod in pods]


class LogStream:
    """Raw byte stream of a container log.

    Wraps the aiohttp response returned by ``read_namespaced_pod_log``
    when content preloading is disabled.
    """

    def __init__(self, response: aiohttp.ClientResponse, source: str) -> None:
        self._response = response
        self.source = source

    async def iter_chunks(self, chunk_size: int = STREAM_CHUNK_SIZE) -> AsyncIterator[bytes]:
        """Yield the log bytes exactly as the API sends them.

        Raises:
            StreamError: If the transport fails before EOF.
        """
        try:
            async for chunk in self._response.content.iter_chunked(chunk_size):
                yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StreamError(f"Log stream from {self.source} interrupted: {e}") from e

    def close(self) -> None:
        """Release the underlying connection."""
        self._response.close()


class KudumpClient:
    """Asynchronous Kubernetes client for log collection.

    Attributes:
        core_api: The Kubernetes CoreV1Api client.
        in_cluster: Whether in-cluster credentials were used.
        kubeconfig: The kubeconfig path used, or None when in-cluster.

    Example:
        async with KudumpClient.create() as client:
            pods = await client.list_pods("default")
    """

    def __init__(
        self,
        api_client: client.ApiClient,
        in_cluster: bool = False,
        kubeconfig: str | None = None,
    ) -> None:
        """Initialize the client with an API client instance.

        Args:
            api_client: The kubernetes_asyncio ApiClient instance.
            in_cluster: Whether in-cluster credentials were used.
            kubeconfig: The kubeconfig path the credentials came from.
        """
        self._api_client = api_client
        self.core_api = client.CoreV1Api(api_client)
        self.in_cluster = in_cluster
        self.kubeconfig = kubeconfig

    @classmethod
    @asynccontextmanager
    async def create(
        cls,
        kubeconfig: str | None = None,
        context: str | None = None,
    ) -> AsyncIterator[Self]:
        """Create and initialize a KudumpClient.

        In-cluster credentials are tried first. If they are unavailable the
        kubeconfig file is loaded, exactly once. The resolved settings are
        bound to a private Configuration, leaving the library default alone.

        Args:
            kubeconfig: Explicit kubeconfig path. Defaults to $KUBECONFIG
                or ~/.kube/config.
            context: Kubeconfig context to use instead of the current one.

        Yields:
            An initialized KudumpClient instance.

        Raises:
            ConfigError: If no credentials resolve or the client cannot be built.
        """
        configuration = client.Configuration()
        in_cluster = True

        try:
            config.load_incluster_config(client_configuration=configuration)
            logger.info("Loaded in-cluster Kubernetes configuration")
        except (ConfigException, OSError) as e:
            in_cluster = False
            kubeconfig = kubeconfig or default_kubeconfig_path()
            logger.debug(f"In-cluster configuration unavailable: {e}")

            try:
                await config.load_kube_config(
                    config_file=kubeconfig,
                    context=context,
                    client_configuration=configuration,
                )
            except Exception as e:
                raise ConfigError(
                    f"Failed to load kubeconfig from {kubeconfig}: {e}"
                ) from e
            logger.info(f"Loaded kubeconfig from {kubeconfig}")

        try:
            api_client = client.ApiClient(configuration=configuration)
        except Exception as e:
            raise ConfigError(f"Failed to create Kubernetes client: {e}") from e

        try:
            yield cls(
                api_client,
                in_cluster=in_cluster,
                kubeconfig=None if in_cluster else kubeconfig,
            )
        finally:
            await api_client.close()

    async def resolve_namespace(self) -> str:
        """Get the namespace to use when none was given.

        Returns:
            The service account namespace when in-cluster, else the
            namespace of the current kubeconfig context, else 'default'.
        """
        if self.in_cluster:
            try:
                namespace = SERVICE_ACCOUNT_NAMESPACE_PATH.read_text().strip()
                if namespace:
                    return namespace
            except OSError as e:
                logger.debug(f"Could not read service account namespace: {e}")
            return DEFAULT_NAMESPACE

        try:
            _, active_context = await asyncio.to_thread(
                config.list_kube_config_contexts,
                config_file=self.kubeconfig,
            )
            if active_context and active_context.get("context", {}).get("namespace"):
                return active_context["context"]["namespace"]
        except Exception as e:
            logger.debug(f"Could not get namespace from context: {e}")

        return DEFAULT_NAMESPACE

    async def list_pods(self, namespace: str) -> list[PodInfo]:
        """List all pods in a namespace.

        No label selector or pagination is applied; the whole namespace is
        returned in one response.

        Args:
            namespace: The namespace to list pods from.

        Returns:
            List of PodInfo objects, in API order.

        Raises:
            ListError: If the pods cannot be listed.
        """
        try:
            response = await self.core_api.list_namespaced_pod(namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                raise ListError(f"Namespace '{namespace}' not found") from e
            if e.status == 403:
                raise ListError(
                    f"Permission denied to list pods in namespace '{namespace}'"
                ) from e
            raise ListError(
                f"Failed to list pods in namespace {namespace}: {e}"
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ListError(
                f"Failed to list pods in namespace {namespace}: {e}"
            ) from e

        return [self._parse_pod(item, namespace) for item in response.items]

    async def get_pod(self, namespace: str, name: str) -> PodInfo:
        """Read a single pod.

        Args:
            namespace: The namespace containing the pod.
            name: The pod name.

        Returns:
            The parsed PodInfo.

        Raises:
            GetPodError: If the pod cannot be read.
        """
        try:
            pod = await self.core_api.read_namespaced_pod(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                raise GetPodError(f"Pod {namespace}/{name} not found") from e
            if e.status == 403:
                raise GetPodError(f"Permission denied for pod {namespace}/{name}") from e
            raise GetPodError(f"Failed to get pod {namespace}/{name}: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise GetPodError(f"Failed to get pod {namespace}/{name}: {e}") from e

        return self._parse_pod(pod, namespace)

    @asynccontextmanager
    async def open_log_stream(
        self,
        namespace: str,
        request: LogRequest,
    ) -> AsyncIterator[LogStream]:
        """Open the raw log stream of a container.

        The stream is closed when the context exits, whatever the outcome.

        Args:
            namespace: The namespace containing the pod.
            request: The log request parameters.

        Yields:
            A LogStream over the response body.

        Raises:
            StreamError: If the stream cannot be opened.
        """
        source = f"{namespace}/{request.pod_name}/{request.container_name}"
        kwargs = request.to_api_kwargs(namespace)
        logger.debug(f"Requesting logs for {source}: {kwargs}")

        try:
            response = await self.core_api.read_namespaced_pod_log(**kwargs)
        except ApiException as e:
            if e.status == 404:
                raise StreamError(
                    f"Pod {namespace}/{request.pod_name} not found"
                ) from e
            if e.status == 403:
                raise StreamError(f"Permission denied for logs of {source}") from e
            if e.status == 400:
                # Unknown container, or container not started yet
                raise StreamError(
                    f"Bad log request for {source}: {e.reason}"
                ) from e
            raise StreamError(f"Failed to get logs stream for {source}: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StreamError(f"Failed to get logs stream for {source}: {e}") from e

        stream = LogStream(response, source)
        try:
            yield stream
        finally:
            stream.close()

    def _parse_pod(self, pod: client.V1Pod, namespace: str) -> PodInfo:
        """Parse a V1Pod object into a PodInfo dataclass.

        Args:
            pod: The Kubernetes V1Pod object.
            namespace: The namespace (for fallback).

        Returns:
            A PodInfo object with parsed data.
        """
        metadata = pod.metadata
        spec = pod.spec
        status = pod.status

        containers: list[str] = []
        init_containers: list[str] = []
        if spec is not None:
            if spec.containers:
                containers = [c.name for c in spec.containers]
            if spec.init_containers:
                init_containers = [c.name for c in spec.init_containers]

        return PodInfo(
            namespace=metadata.namespace or namespace,
            name=metadata.name,
            phase=(status.phase if status and status.phase else "Unknown"),
            containers=containers,
            init_containers=init_containers,
        )
