"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository, parse_links
from .models import GlobalConfig

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "GlobalConfig",
    "parse_links",
]
