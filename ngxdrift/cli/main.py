"""Click entry point: ``kubectl nginx-ingress-controller-configuration-checker``."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import click

from ngxdrift import __version__
from ngxdrift.config import load_config
from ngxdrift.drift.fetcher import ConfigFetcher
from ngxdrift.drift.pipeline import DriftPipeline
from ngxdrift.errors import ConfigurationError, DriftCheckError
from ngxdrift.kube.executor import PodExecutor
from ngxdrift.kube.listers import build_lister, lister_class
from ngxdrift.kube.session import KubeSession
from ngxdrift.models.config import DriftCheckConfig
from ngxdrift.models.drift import DriftVerdict
from ngxdrift.models.pods import ContainerSelector
from ngxdrift.observability.logging import get_logger, setup_logging

COMMAND = "nginx-ingress-controller-configuration-checker"

_EXAMPLES = f"""
\b
Examples:
  # check the ingress-nginx-controller deployed as a deployment
  kubectl {COMMAND} deploy ingress-nginx-controller -n ingress-nginx

\b
  # check a controller deployed as a daemonset, reading the "controller" container
  kubectl {COMMAND} ds custom-nginx-ingress-controller -n edge -c controller
"""


async def run_check(
    kind: str,
    name: str,
    config: DriftCheckConfig,
    echo: Callable[[str], None] = click.echo,
) -> DriftVerdict:
    """Resolve the workload, run the drift pipeline and report the verdict.

    Raises:
        DriftDetectedError: two pods differ.
        DriftCheckError:    any other failure of the run.
    """
    log = get_logger("cli")
    async with KubeSession(kubeconfig=config.kubeconfig, context=config.context) as session:
        lister = build_lister(kind, name, config.namespace, session.api_client)
        await lister.resolve()
        echo(f"{lister.kind} found: {name}")

        fetcher = ConfigFetcher(
            PodExecutor(session.ws_client),
            path=config.config_path,
            timeout=config.exec_timeout_seconds,
        )
        pipeline = DriftPipeline(
            lister,
            fetcher,
            ContainerSelector(config.container),
            progress=echo,
            dump_dir=config.dump_dir,
        )
        verdict = await pipeline.run()

    log.info("verdict", kind=lister.kind, name=name, namespace=config.namespace, drifted=verdict.drifted)
    verdict.raise_for_drift()
    echo(verdict.describe())
    return verdict


@click.command(
    name=COMMAND,
    epilog=_EXAMPLES,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.argument("args", nargs=-1, metavar="KIND NAME")
@click.option("-n", "--namespace", default=None, help="Namespace of the workload. Required.")
@click.option(
    "-c", "--container", default=None, help="Container name. If omitted, the first container in the pod will be chosen."
)
@click.option("--context", default=None, help="Kubeconfig context to use instead of the current one.")
@click.option("--kubeconfig", default=None, help="Path to the kubeconfig file.")
@click.option("-f", "--file", "config_path", default=None, help="Configuration file to compare (default /etc/nginx/nginx.conf).")
@click.option("--timeout", "exec_timeout_seconds", type=int, default=None, help="Per-pod read deadline in seconds, 0 disables it.")
@click.option(
    "--dump-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Write every pod's raw configuration to DIR/<pod>.conf.",
)
@click.option("-v", "--verbose", is_flag=True, help="Emit debug logs on stderr.")
@click.version_option(__version__, prog_name="ngxdrift")
def cli(
    args: tuple[str, ...],
    namespace: str | None,
    container: str | None,
    context: str | None,
    kubeconfig: str | None,
    config_path: str | None,
    exec_timeout_seconds: int | None,
    dump_dir: str | None,
    verbose: bool,
) -> None:
    """Inspect and look for configuration drift in the nginx-ingress-controller running containers.

    KIND is one of deployment, deploy, daemonset or ds.
    """
    try:
        if len(args) != 2:
            raise ConfigurationError("specify both a resource and its name")
        kind, name = args
        if not kind:
            raise ConfigurationError("specify a resource")
        if not name:
            raise ConfigurationError("specify a name")
        lister_class(kind)

        config = load_config(
            namespace=namespace,
            container=container,
            context=context,
            kubeconfig=kubeconfig,
            config_path=config_path,
            exec_timeout_seconds=exec_timeout_seconds,
            dump_dir=dump_dir,
            log_level="debug" if verbose else None,
        )
        setup_logging(config.log.level, config.log.format)

        asyncio.run(run_check(kind, name, config))
    except DriftCheckError as exc:
        click.echo(f"error: {exc}", err=True)
        raise SystemExit(exc.exit_code) from exc
