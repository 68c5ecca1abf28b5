"""OpenTelemetry access for sqlgate.

Only the API package is used: spans are no-ops until the host process
installs an SDK tracer provider.
"""

from typing import Optional

from opentelemetry import trace

from sqlgate.__version__ import __version__

__all__ = ["get_tracer"]


def get_tracer(name: str, version: Optional[str] = None) -> trace.Tracer:
    return trace.get_tracer(name, version or __version__)
