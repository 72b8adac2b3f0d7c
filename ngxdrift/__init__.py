"""ngxdrift -- configuration drift checker for nginx ingress controller pods."""

__version__ = "0.3.0"
