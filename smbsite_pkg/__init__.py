"""
SMBSite - A static website generator for small businesses.

SMBSite reads a single YAML configuration file describing a business
(contact details, hours, branding, services, reviews and more), resolves it
into one typed configuration object with sensible defaults, and renders a
complete marketing site with Jinja2 templates.
"""

__version__ = "1.0.0"

from .config import SiteConfig, resolve, full_address, years_in_business_text
from .settings import SiteSettings, ConfigError
from .reviews import Review, ReviewsAccessor
from .core import SiteBuilder

__all__ = [
    'SiteConfig', 'resolve', 'full_address', 'years_in_business_text',
    'SiteSettings', 'ConfigError', 'Review', 'ReviewsAccessor', 'SiteBuilder',
]
