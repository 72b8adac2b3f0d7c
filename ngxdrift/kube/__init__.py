"""Kubernetes collaborators for ngxdrift.

Submodules
----------
session  -- KubeSession: kubeconfig/context loading and owned API clients.
listers  -- PodLister implementations for Deployments and DaemonSets.
executor -- PodExecutor: remote command execution over the exec websocket.
"""
