"""SIMINT admin API forwarder.

This module provides the FastAPI reverse-proxy app that relays dashboard
calls to the upstream admin API.
"""

from .server import ProxyConfig, create_app  # noqa: F401
