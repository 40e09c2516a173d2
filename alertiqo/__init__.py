"""Alertiqo: error and message reporting client."""

from alertiqo.client import Alertiqo
from alertiqo.config import ClientConfig, load_config
from alertiqo.hosts import BrowserError, BrowserHost, NullHost, ProcessHost, detect_host
from alertiqo.models import Breadcrumb, Context, Report, User

__version__ = "0.1.0"

__all__ = [
    "Alertiqo",
    "BrowserError",
    "BrowserHost",
    "Breadcrumb",
    "ClientConfig",
    "Context",
    "NullHost",
    "ProcessHost",
    "Report",
    "User",
    "detect_host",
    "load_config",
]
