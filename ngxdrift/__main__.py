"""Entry point for `python -m ngxdrift`.

Usage:
    python -m ngxdrift deploy ingress-nginx-controller -n ingress-nginx
"""

from __future__ import annotations

from ngxdrift.cli import cli

cli()
