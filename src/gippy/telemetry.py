from __future__ import annotations
import logging
from azure.monitor.opentelemetry import configure_azure_monitor
from opentelemetry import trace
from gippy.config import Settings

logger = logging.getLogger(__name__)

_configured = False

def setup_telemetry(settings: Settings) -> None:
    """Export spans to Application Insights when a connection string is configured.

    Without one the OpenTelemetry API keeps its no-op tracer provider, so spans
    cost nothing on a plain terminal install.
    """
    global _configured
    if _configured:
        return

    conn_string = settings.appinsights_connection_string
    if conn_string:
        try:
            configure_azure_monitor(connection_string=conn_string)
        except Exception as e:
            logger.warning("Failed to setup telemetry: %s", e)

    _configured = True

def get_tracer(name: str = "gippy"):
    return trace.get_tracer(name)
