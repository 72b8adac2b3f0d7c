"""ngxdrift command-line interface.

Exposes:
    cli -- Click command entry point (registered as ``ngxdrift`` and as the
           ``kubectl-nginx_ingress_controller_configuration_checker`` plugin).
"""

from ngxdrift.cli.main import cli

__all__ = ["cli"]
