"""Cluster access: kubeconfig/context loading and API client lifecycle."""

from __future__ import annotations

import os
from types import TracebackType

from kubernetes_asyncio import client as k8s_client
from kubernetes_asyncio import config as k8s_config
from kubernetes_asyncio.stream import WsApiClient

from ngxdrift.errors import ClusterAccessError
from ngxdrift.observability.logging import get_logger

_log = get_logger("kube.session")


class KubeSession:
    """Owns the REST and websocket API clients used by a single run.

    Use as an async context manager; both clients are closed on exit::

        async with KubeSession(kubeconfig=None, context=None) as session:
            apps = k8s_client.AppsV1Api(session.api_client)
    """

    def __init__(self, kubeconfig: str | None = None, context: str | None = None) -> None:
        self._kubeconfig = kubeconfig
        self._context = context
        self._configuration: k8s_client.Configuration | None = None
        self.api_client: k8s_client.ApiClient | None = None
        self.ws_client: WsApiClient | None = None

    async def __aenter__(self) -> KubeSession:
        self._configuration = await self._load_configuration()
        self.api_client = k8s_client.ApiClient(configuration=self._configuration)
        self.ws_client = WsApiClient(configuration=self._configuration)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        for api in (self.ws_client, self.api_client):
            if api is None:
                continue
            try:
                await api.close()
            except Exception as exc:
                _log.debug("k8s client close raised (non-fatal)", error=str(exc))
        self.ws_client = None
        self.api_client = None

    async def _load_configuration(self) -> k8s_client.Configuration:
        configuration = k8s_client.Configuration()
        try:
            if self._context is None:
                self._require_current_context()
            await k8s_config.load_kube_config(
                config_file=self._kubeconfig,
                context=self._context,
                client_configuration=configuration,
                persist_config=False,
            )
            _log.debug("k8s client configured from kubeconfig", context=self._context or "<current>")
        except k8s_config.ConfigException as exc:
            if self._kubeconfig is None and self._context is None and _running_in_cluster():
                k8s_config.load_incluster_config(client_configuration=configuration)
                _log.debug("k8s client configured from in-cluster service account")
            else:
                raise ClusterAccessError(f"unable to load kubeconfig: {exc}") from exc
        return configuration

    def _require_current_context(self) -> None:
        try:
            _, current = k8s_config.list_kube_config_contexts(config_file=self._kubeconfig)
        except k8s_config.ConfigException:
            # No usable kubeconfig at all; load_kube_config reports it properly.
            return
        if not current:
            raise ClusterAccessError("no current context is set")


def _running_in_cluster() -> bool:
    return bool(os.environ.get("KUBERNETES_SERVICE_HOST"))
