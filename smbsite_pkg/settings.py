#!/usr/bin/env python3
"""
Settings loader for SMBSite.
Reads config.yaml (or config.yml) and the optional secrets.yaml overlay.
"""

import os
import copy
import yaml
from typing import Dict, Any, Optional

from .config import SiteConfig, resolve


class ConfigError(ValueError):
    """Raised when a configuration document cannot be read or parsed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class SiteSettings:
    """Locate, load and resolve SMBSite configuration documents."""

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['config.yaml', 'config.yml']

    # Secrets overlay, kept out of version control
    SECRETS_FILES = ['secrets.yaml', 'secrets.yml']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory holding config.yaml. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.config_file_path = None
        self.secrets_file_path = None

    def load(self, include_secrets: bool = True, current_year: int = None) -> SiteConfig:
        """
        Load the raw documents and resolve them into a SiteConfig.

        Raises:
            ConfigError: If the primary document is missing or cannot be parsed.
        """
        raw = self.load_raw()
        if include_secrets:
            raw = self.merge_overlay(raw, self.load_secrets())
        return resolve(raw, current_year=current_year)

    def load_raw(self) -> Dict[str, Any]:
        """
        Load the primary configuration document.

        Returns:
            Parsed document as a dictionary

        Raises:
            ConfigError: If no config file exists or it cannot be parsed.
        """
        config_file = self._find_file(self.CONFIG_FILES)
        if not config_file:
            raise ConfigError(
                f"Configuration file not found: {os.path.join(self.config_dir, self.CONFIG_FILES[0])}",
                path=os.path.join(self.config_dir, self.CONFIG_FILES[0]),
            )
        self.config_file_path = config_file
        return self._load_yaml_file(config_file)

    def load_secrets(self) -> Dict[str, Any]:
        """
        Load the optional secrets overlay.

        Returns:
            Parsed overlay, or an empty dictionary when no secrets file exists
        """
        secrets_file = self._find_file(self.SECRETS_FILES)
        if not secrets_file:
            return {}
        self.secrets_file_path = secrets_file
        return self._load_yaml_file(secrets_file)

    @staticmethod
    def merge_overlay(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
        """
        Recursively merge ``overlay`` on top of ``base``.
        Nested mappings are merged key by key; any other overlay value replaces
        the base value. Neither argument is modified.
        """
        merged = copy.deepcopy(base) if isinstance(base, dict) else {}
        if not isinstance(overlay, dict):
            return merged

        for key, value in overlay.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = SiteSettings.merge_overlay(merged[key], value)
            else:
                merged[key] = copy.deepcopy(value)
        return merged

    def _find_file(self, candidates) -> Optional[str]:
        """Return the first existing file from candidates, or None."""
        for filename in candidates:
            path = os.path.join(self.config_dir, filename)
            if os.path.isfile(path):
                return path
        return None

    def _load_yaml_file(self, path: str) -> Dict[str, Any]:
        """
        Parse a YAML document.

        An empty document yields an empty dictionary. A document whose top
        level is not a mapping is left for the resolver to treat as empty.
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise ConfigError(f"Configuration file not found: {path}", path=path) from e
        except PermissionError as e:
            raise ConfigError(f"Permission denied reading configuration file: {path}", path=path) from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file {path}: {e}", path=path) from e
        except (IOError, OSError) as e:
            raise ConfigError(f"Error reading configuration file {path}: {e}", path=path) from e

        return data if data is not None else {}

    def create_sample_config(self, overwrite: bool = False) -> str:
        """
        Write a commented starter config.yaml.

        Returns:
            Path to the created file

        Raises:
            FileExistsError: If config.yaml exists and overwrite is False.
        """
        config_path = os.path.join(self.config_dir, self.CONFIG_FILES[0])
        if os.path.exists(config_path) and not overwrite:
            raise FileExistsError(f"Configuration file already exists: {config_path}")

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(SAMPLE_CONFIG)
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path


SAMPLE_CONFIG = """# SMBSite Configuration File
# The single source of truth for your site. Every field is optional.

# Business information
business:
  name: Acme Corp
  legal_name: Acme Corporation LLC
  tagline: Quality Solutions for Your Business
  description: Acme Corp provides professional services and solutions.
  year_founded: 2010
  industry: general

# Website
site:
  url: https://acme.com
  locale: en-US
  timezone: America/New_York
  default_og_image: /images/og-image.png

# Contact details
contact:
  email: hello@acme.com
  phone: (555) 555-0100
  phone_raw: "+15555550100"
  address:
    street: 123 Main Street
    suite: ""
    city: Springfield
    state: ST
    zip: "12345"
    country: USA
  service_area: ""

# Social profiles (full URLs, leave blank to hide)
social:
  facebook: ""
  instagram: ""
  twitter: ""
  linkedin: ""
  youtube: ""
  tiktok: ""
  pinterest: ""
  yelp: ""
  google_business: ""
  nextdoor: ""
  bbb: ""
  whatsapp: ""

# Opening hours
hours:
  display: "Mon-Fri: 9AM-5PM"
  detailed:
    monday: 9:00 AM - 5:00 PM
    tuesday: 9:00 AM - 5:00 PM
    wednesday: 9:00 AM - 5:00 PM
    thursday: 9:00 AM - 5:00 PM
    friday: 9:00 AM - 5:00 PM
    saturday: Closed
    sunday: Closed
  structured:
    - days: [Monday, Tuesday, Wednesday, Thursday, Friday]
      open: "09:00"
      close: "17:00"

# Navigation
navigation:
  main:
    - name: Home
      href: /
    - name: About
      href: /about
    - name: Blog
      href: /blog
    - name: Contact
      href: /contact
  footer:
    quick_links:
      - name: About
        href: /about
      - name: Contact
        href: /contact
    legal:
      - name: Privacy Policy
        href: /privacy
      - name: Terms of Service
        href: /terms

# Look and feel
branding:
  colors:
    primary: "#2563eb"
    primary_dark: "#1e40af"
    secondary: "#64748b"
    accent: "#f59e0b"
    text: "#1f2937"
    text_light: "#6b7280"
    background: "#ffffff"
    surface: "#f9fafb"
  fonts:
    heading: Inter
    body: Inter
  style: modern  # modern, classic, playful, minimal
  logo:
    text: ""
    show_icon: true

# Trust signals
trust:
  show_years_in_business: true
  customers_served: "500+"
  satisfaction_rate: "98%"
  response_time: Same day
  certifications: []
  awards: []
  affiliations: []
  guarantees: []

# Calls to action
cta:
  primary:
    text: Get Started
    url: /contact
  secondary:
    text: Call Now
  urgency: ""

services:
  enabled: true
  headline: Our Services
  subheadline: ""
  items:
    - name: Consulting
      description: Expert advice tailored to your needs.
      icon: star
      url: /contact

value_props:
  enabled: true
  headline: Why Choose Us
  items:
    - title: Experienced
      description: Years of hands-on experience.
      icon: check

features:
  blog: true
  contact_form: true
  reviews: true
  services_section: true
  newsletter: false
  chat: false
  booking: false

seo:
  title_template: "%s | Acme Corp"
  default_title: Acme Corp - Quality Solutions for Your Business
  default_description: Acme Corp provides professional services and solutions.
  keywords: []

legal:
  copyright_holder: Acme Corp
  privacy_email: hello@acme.com
  terms_last_updated: ""
  privacy_last_updated: ""

analytics:
  google_analytics:
    enabled: false
    measurement_id: ""
  google_tag_manager:
    enabled: false
    container_id: ""
  google_site_verification: ""

# Reviews shown per page (review text lives in data/reviews.json)
reviews:
  enabled: true
  pages:
    - path: /
      layout: featured  # featured, standard, compact, carousel, 3-row
      position: before-cta  # before-cta, after-cta, after-hero
      max_reviews: 3
  tagged: {}

contact_form:
  enabled: true
  recipient_email: hello@acme.com
  subject_prefix: "[Acme Corp Contact]"

# API keys and the admin path belong in secrets.yaml
email:
  provider: resend
  from_email: Acme Corp <noreply@acme.com>
  reply_to: hello@acme.com
"""
