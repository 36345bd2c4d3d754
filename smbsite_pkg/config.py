#!/usr/bin/env python3
"""
Configuration resolver for SMBSite.

Turns the raw, loosely-structured ``config.yaml`` tree into a fully-defaulted,
immutable :class:`SiteConfig`. Every field is resolved through an explicit
precedence chain (an ordered tuple of dotted paths, first populated wins) so
that the rules for legacy and current document shapes can be read and tested
one field at a time.

Resolution never fails for data-shape reasons: missing, null or malformed
values fall back to their defaults. Reading and parsing the document is the
job of :mod:`smbsite_pkg.settings`.
"""

import re
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


DEFAULT_BUSINESS_NAME = 'Acme Corp'

WEEKDAYS = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')

# Precedence chains: first populated path wins.
BUSINESS_NAME_CHAIN = ('business.name', 'site.name')
TAGLINE_CHAIN = ('business.tagline', 'site.tagline')
DESCRIPTION_CHAIN = ('business.description', 'site.description')
PHONE_CHAIN = ('contact.phone', 'contact.phone_local')
# Whole-object either/or: the detailed block replaces the legacy flat shape.
HOURS_CHAIN = ('hours.detailed', 'hours')
QUICK_LINKS_CHAIN = ('navigation.footer.quick_links', 'navigation.footer.quickLinks')

BRANDING_COLORS = (
    ('primary', 'primary', '#2563eb'),
    ('primary_dark', 'primary_dark', '#1e40af'),
    ('secondary', 'secondary', '#64748b'),
    ('accent', 'accent', '#f59e0b'),
    ('text', 'text', '#1f2937'),
    ('text_light', 'text_light', '#6b7280'),
    ('background', 'background', '#ffffff'),
    ('surface', 'surface', '#f9fafb'),
)

SOCIAL_PLATFORMS = (
    'facebook', 'instagram', 'twitter', 'linkedin', 'youtube', 'tiktok',
    'pinterest', 'yelp', 'google_business', 'nextdoor', 'bbb', 'whatsapp',
)

FEATURE_DEFAULTS = (
    ('blog', True),
    ('contact_form', True),
    ('reviews', True),
    ('services_section', True),
    ('newsletter', False),
    ('chat', False),
    ('booking', False),
)

BRANDING_STYLES = ('modern', 'classic', 'playful', 'minimal')
REVIEW_LAYOUTS = ('featured', 'standard', 'compact', 'carousel', '3-row')
REVIEW_POSITIONS = ('before-cta', 'after-cta', 'after-hero')

DEFAULT_MAX_REVIEWS = 3
DEFAULT_EMAIL_API_URL = 'https://api.resend.com/emails'

_NON_DIGITS = re.compile(r'\D')


# =============================================================================
# Resolved types
# =============================================================================

@dataclass(frozen=True)
class Business:
    name: str
    legal_name: str
    tagline: str
    description: str
    year_founded: int
    industry: str


@dataclass(frozen=True)
class Address:
    street: str
    suite: str
    city: str
    state: str
    zip: str
    country: str


@dataclass(frozen=True)
class Contact:
    email: str
    phone: str
    phone_raw: str
    phone_local: str
    address: Address
    service_area: str


@dataclass(frozen=True)
class Social:
    facebook: str
    instagram: str
    twitter: str
    linkedin: str
    youtube: str
    tiktok: str
    pinterest: str
    yelp: str
    google_business: str
    nextdoor: str
    bbb: str
    whatsapp: str

    def links(self) -> Tuple[Tuple[str, str], ...]:
        """Return ``(platform, url)`` pairs for the platforms that are set."""
        return tuple(
            (platform, getattr(self, platform))
            for platform in SOCIAL_PLATFORMS
            if getattr(self, platform)
        )


@dataclass(frozen=True)
class Hours:
    display: str
    monday: str
    tuesday: str
    wednesday: str
    thursday: str
    friday: str
    saturday: str
    sunday: str


@dataclass(frozen=True)
class HoursBlock:
    days: Tuple[str, ...]
    open: str
    close: str


@dataclass(frozen=True)
class BrandingColors:
    primary: str
    primary_dark: str
    secondary: str
    accent: str
    text: str
    text_light: str
    background: str
    surface: str


@dataclass(frozen=True)
class Fonts:
    heading: str
    body: str


@dataclass(frozen=True)
class Logo:
    text: str
    show_icon: bool


@dataclass(frozen=True)
class Branding:
    colors: BrandingColors
    fonts: Fonts
    style: str
    logo: Logo


@dataclass(frozen=True)
class Trust:
    show_years_in_business: bool
    years_in_business: int
    customers_served: str
    satisfaction_rate: str
    response_time: str
    certifications: Tuple[str, ...]
    awards: Tuple[str, ...]
    affiliations: Tuple[str, ...]
    guarantees: Tuple[str, ...]


@dataclass(frozen=True)
class Link:
    text: str
    url: str


@dataclass(frozen=True)
class CTA:
    primary: Link
    secondary: Link
    urgency: str


@dataclass(frozen=True)
class ServiceItem:
    name: str
    description: str
    icon: str
    url: str


@dataclass(frozen=True)
class Services:
    enabled: bool
    headline: str
    subheadline: str
    items: Tuple[ServiceItem, ...]


@dataclass(frozen=True)
class ValuePropItem:
    title: str
    description: str
    icon: str


@dataclass(frozen=True)
class ValueProps:
    enabled: bool
    headline: str
    items: Tuple[ValuePropItem, ...]


@dataclass(frozen=True)
class Features:
    blog: bool
    contact_form: bool
    reviews: bool
    services_section: bool
    newsletter: bool
    chat: bool
    booking: bool


@dataclass(frozen=True)
class SEO:
    title_template: str
    default_title: str
    default_description: str
    keywords: Tuple[str, ...]

    def format_title(self, title: Optional[str] = None) -> str:
        """Apply ``title_template`` to a page title, or return the default title."""
        if not title:
            return self.default_title
        return self.title_template.replace('%s', title)


@dataclass(frozen=True)
class Legal:
    copyright_holder: str
    privacy_email: str
    terms_last_updated: str
    privacy_last_updated: str


@dataclass(frozen=True)
class NavItem:
    name: str
    href: str
    children: Tuple['NavItem', ...]


@dataclass(frozen=True)
class FooterLinks:
    quick_links: Tuple[NavItem, ...]
    legal: Tuple[NavItem, ...]


@dataclass(frozen=True)
class TrackerSettings:
    enabled: bool
    tracking_id: str


@dataclass(frozen=True)
class Analytics:
    google_analytics: TrackerSettings
    google_tag_manager: TrackerSettings
    google_site_verification: str


@dataclass(frozen=True)
class ReviewPageConfig:
    path: str
    layout: str
    position: str
    max_reviews: int


@dataclass(frozen=True)
class ReviewsConfig:
    enabled: bool
    pages: Tuple[ReviewPageConfig, ...]
    tagged: Mapping[str, Tuple[str, ...]]

    def page(self, path: str) -> Optional[ReviewPageConfig]:
        """Return the first page config whose path matches exactly."""
        for page_config in self.pages:
            if page_config.path == path:
                return page_config
        return None


@dataclass(frozen=True)
class ContactFormSettings:
    enabled: bool
    recipient_email: str
    subject_prefix: str
    success_message: str


@dataclass(frozen=True)
class EmailSettings:
    provider: str
    api_url: str
    api_key: str
    from_email: str
    reply_to: str


@dataclass(frozen=True)
class AdminSettings:
    secret_path: str


@dataclass(frozen=True)
class SiteConfig:
    """Fully resolved site configuration. Every field is always present."""
    name: str
    tagline: str
    description: str
    url: str
    default_og_image: str
    locale: str
    timezone: str
    copyright: str
    business: Business
    contact: Contact
    social: Social
    hours: Hours
    hours_structured: Tuple[HoursBlock, ...]
    navigation: Tuple[NavItem, ...]
    footer_links: FooterLinks
    analytics: Analytics
    branding: Branding
    trust: Trust
    cta: CTA
    services: Services
    value_props: ValueProps
    features: Features
    seo: SEO
    legal: Legal
    reviews: ReviewsConfig
    contact_form: ContactFormSettings
    email: EmailSettings
    admin: AdminSettings


# =============================================================================
# Raw tree access
# =============================================================================

def lookup(raw: Any, path: str) -> Any:
    """Follow a dotted path through nested mappings, returning None when absent."""
    node = raw
    for key in path.split('.'):
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def first_populated(raw: Any, paths: Iterable[str], default: Any = None) -> Any:
    """Return the first truthy value found along ``paths``, else ``default``."""
    for path in paths:
        value = lookup(raw, path)
        if value:
            return value
    return default


def _text(value: Any, default: str = '') -> str:
    # Mappings and lists are not text; treat them as unpopulated.
    if not value or isinstance(value, (dict, list)):
        return default
    return str(value)


def text(raw: Any, paths, default: str = '') -> str:
    """Resolve a string field through a precedence chain."""
    if isinstance(paths, str):
        paths = (paths,)
    for path in paths:
        value = _text(lookup(raw, path))
        if value:
            return value
    return default


def flag(raw: Any, path: str, default: bool) -> bool:
    """Resolve a boolean field. Only an absent or null value takes the default."""
    value = lookup(raw, path)
    if value is None:
        return default
    return bool(value)


def sequence(raw: Any, path: str) -> Tuple[Any, ...]:
    value = lookup(raw, path)
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return ()


def string_sequence(raw: Any, path: str, drop_empty: bool = False) -> Tuple[str, ...]:
    values = tuple(_text(item) for item in sequence(raw, path))
    if drop_empty:
        return tuple(value for value in values if value)
    return values


def positive_int(value: Any, default: int) -> int:
    if isinstance(value, bool) or not value:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def digits_only(phone: str) -> str:
    """Strip every non-digit character. Idempotent on already-raw numbers."""
    return _NON_DIGITS.sub('', phone or '')


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


# =============================================================================
# Section resolvers
# =============================================================================

def _resolve_business(raw, current_year):
    name = text(raw, BUSINESS_NAME_CHAIN, DEFAULT_BUSINESS_NAME)
    return Business(
        name=name,
        legal_name=text(raw, 'business.legal_name', name),
        tagline=text(raw, TAGLINE_CHAIN),
        description=text(raw, DESCRIPTION_CHAIN),
        year_founded=positive_int(lookup(raw, 'business.year_founded'), current_year),
        industry=text(raw, 'business.industry', 'general'),
    )


def _resolve_contact(raw):
    phone = text(raw, PHONE_CHAIN)
    phone_raw = text(raw, 'contact.phone_raw') or digits_only(phone)
    return Contact(
        email=text(raw, 'contact.email'),
        phone=phone,
        phone_raw=phone_raw,
        phone_local=phone,
        address=Address(
            street=text(raw, 'contact.address.street'),
            suite=text(raw, 'contact.address.suite'),
            city=text(raw, 'contact.address.city'),
            state=text(raw, 'contact.address.state'),
            zip=text(raw, 'contact.address.zip'),
            country=text(raw, 'contact.address.country'),
        ),
        service_area=text(raw, 'contact.service_area'),
    )


def _hours_source(raw) -> Dict[str, Any]:
    for path in HOURS_CHAIN:
        candidate = lookup(raw, path)
        if isinstance(candidate, dict) and candidate:
            return candidate
    return {}


def _resolve_hours(raw):
    source = _hours_source(raw)
    weekdays = {day: _text(source.get(day)) for day in WEEKDAYS}
    return Hours(display=text(raw, 'hours.display', 'Mon-Fri: 9AM-5PM'), **weekdays)


def _resolve_hours_structured(raw):
    blocks = []
    for entry in sequence(raw, 'hours.structured'):
        entry = _mapping(entry)
        blocks.append(HoursBlock(
            days=string_sequence(entry, 'days', drop_empty=True),
            open=text(entry, 'open'),
            close=text(entry, 'close'),
        ))
    return tuple(blocks)


def _resolve_nav_items(items) -> Tuple[NavItem, ...]:
    resolved = []
    for item in items or ():
        item = _mapping(item)
        resolved.append(NavItem(
            name=text(item, 'name'),
            href=text(item, 'href'),
            children=_resolve_nav_items(sequence(item, 'children')),
        ))
    return tuple(resolved)


def _resolve_footer_links(raw):
    quick_links = first_populated(raw, QUICK_LINKS_CHAIN, [])
    if not isinstance(quick_links, list):
        quick_links = []
    return FooterLinks(
        quick_links=_resolve_nav_items(quick_links),
        legal=_resolve_nav_items(sequence(raw, 'navigation.footer.legal')),
    )


def _resolve_analytics(raw):
    return Analytics(
        google_analytics=TrackerSettings(
            enabled=bool(lookup(raw, 'analytics.google_analytics.enabled')),
            tracking_id=text(raw, 'analytics.google_analytics.measurement_id'),
        ),
        google_tag_manager=TrackerSettings(
            enabled=bool(lookup(raw, 'analytics.google_tag_manager.enabled')),
            tracking_id=text(raw, 'analytics.google_tag_manager.container_id'),
        ),
        google_site_verification=text(raw, 'analytics.google_site_verification'),
    )


def _resolve_branding(raw):
    colors = {
        field: text(raw, f'branding.colors.{key}', default)
        for field, key, default in BRANDING_COLORS
    }
    return Branding(
        colors=BrandingColors(**colors),
        fonts=Fonts(
            heading=text(raw, 'branding.fonts.heading', 'Inter'),
            body=text(raw, 'branding.fonts.body', 'Inter'),
        ),
        # Unknown styles are passed through for custom themes.
        style=text(raw, 'branding.style', 'modern'),
        logo=Logo(
            text=text(raw, 'branding.logo.text'),
            show_icon=flag(raw, 'branding.logo.show_icon', True),
        ),
    )


def _resolve_trust(raw, business, current_year):
    return Trust(
        show_years_in_business=flag(raw, 'trust.show_years_in_business', True),
        years_in_business=current_year - business.year_founded,
        customers_served=text(raw, 'trust.customers_served'),
        satisfaction_rate=text(raw, 'trust.satisfaction_rate'),
        response_time=text(raw, 'trust.response_time'),
        certifications=string_sequence(raw, 'trust.certifications', drop_empty=True),
        awards=string_sequence(raw, 'trust.awards'),
        affiliations=string_sequence(raw, 'trust.affiliations'),
        guarantees=string_sequence(raw, 'trust.guarantees'),
    )


def _resolve_cta(raw, contact):
    return CTA(
        primary=Link(
            text=text(raw, 'cta.primary.text', 'Get Started'),
            url=text(raw, 'cta.primary.url', '/contact'),
        ),
        secondary=Link(
            text=text(raw, 'cta.secondary.text', 'Call Now'),
            url=text(raw, 'cta.secondary.url', f'tel:{contact.phone_raw}'),
        ),
        urgency=text(raw, 'cta.urgency'),
    )


def _resolve_services(raw):
    items = []
    for item in sequence(raw, 'services.items'):
        item = _mapping(item)
        items.append(ServiceItem(
            name=text(item, 'name'),
            description=text(item, 'description'),
            icon=text(item, 'icon', 'star'),
            url=text(item, 'url'),
        ))
    return Services(
        enabled=flag(raw, 'services.enabled', True),
        headline=text(raw, 'services.headline', 'Our Services'),
        subheadline=text(raw, 'services.subheadline'),
        items=tuple(items),
    )


def _resolve_value_props(raw):
    items = []
    for item in sequence(raw, 'value_props.items'):
        item = _mapping(item)
        items.append(ValuePropItem(
            title=text(item, 'title'),
            description=text(item, 'description'),
            icon=text(item, 'icon', 'check'),
        ))
    return ValueProps(
        enabled=flag(raw, 'value_props.enabled', True),
        headline=text(raw, 'value_props.headline', 'Why Choose Us'),
        items=tuple(items),
    )


def _resolve_features(raw):
    return Features(**{
        name: flag(raw, f'features.{name}', default)
        for name, default in FEATURE_DEFAULTS
    })


def _resolve_seo(raw, business):
    return SEO(
        title_template=text(raw, 'seo.title_template', f'%s | {business.name}'),
        default_title=text(raw, 'seo.default_title', business.name),
        default_description=text(raw, 'seo.default_description', business.description),
        keywords=string_sequence(raw, 'seo.keywords', drop_empty=True),
    )


def _resolve_legal(raw, business):
    return Legal(
        copyright_holder=text(raw, 'legal.copyright_holder', business.name),
        privacy_email=text(raw, ('legal.privacy_email', 'contact.email')),
        terms_last_updated=text(raw, 'legal.terms_last_updated'),
        privacy_last_updated=text(raw, 'legal.privacy_last_updated'),
    )


def _resolve_reviews(raw):
    pages = []
    for page in sequence(raw, 'reviews.pages'):
        page = _mapping(page)
        pages.append(ReviewPageConfig(
            path=text(page, 'path'),
            layout=text(page, 'layout', 'standard'),
            position=text(page, 'position', 'before-cta'),
            max_reviews=positive_int(page.get('max_reviews'), DEFAULT_MAX_REVIEWS),
        ))

    tagged = {}
    for review_id, paths in _mapping(lookup(raw, 'reviews.tagged')).items():
        if isinstance(paths, str):
            paths = [paths]
        if not isinstance(paths, (list, tuple)):
            paths = []
        tagged[str(review_id)] = tuple(_text(p) for p in paths if _text(p))

    return ReviewsConfig(
        enabled=flag(raw, 'reviews.enabled', True),
        pages=tuple(pages),
        tagged=MappingProxyType(tagged),
    )


def _resolve_contact_form(raw, business, contact):
    return ContactFormSettings(
        enabled=flag(raw, 'contact_form.enabled', True),
        recipient_email=text(raw, 'contact_form.recipient_email', contact.email),
        subject_prefix=text(raw, 'contact_form.subject_prefix', f'[{business.name} Contact]'),
        success_message=text(
            raw, 'contact_form.success_message',
            "Thanks for reaching out! We'll get back to you shortly.",
        ),
    )


def _resolve_email(raw, contact):
    return EmailSettings(
        provider=text(raw, 'email.provider', 'resend'),
        api_url=text(raw, 'email.api_url', DEFAULT_EMAIL_API_URL),
        api_key=text(raw, 'email.api_key'),
        from_email=text(raw, 'email.from_email'),
        reply_to=text(raw, 'email.reply_to', contact.email),
    )


# =============================================================================
# Entry points
# =============================================================================

def resolve(raw: Any, current_year: Optional[int] = None) -> SiteConfig:
    """
    Resolve a raw configuration tree into a :class:`SiteConfig`.

    Args:
        raw: Parsed configuration document (secrets overlay already merged).
            Anything that is not a mapping is treated as an empty document.
        current_year: Year used for derived values. Defaults to today's year.

    Returns:
        The fully-defaulted, immutable site configuration.
    """
    raw = _mapping(raw)
    if current_year is None:
        current_year = date.today().year

    business = _resolve_business(raw, current_year)
    contact = _resolve_contact(raw)
    legal = _resolve_legal(raw, business)

    return SiteConfig(
        name=business.name,
        tagline=business.tagline,
        description=business.description,
        url=text(raw, 'site.url'),
        default_og_image=text(raw, 'site.default_og_image', '/images/og-image.png'),
        locale=text(raw, 'site.locale', 'en-US'),
        timezone=text(raw, 'site.timezone', 'America/New_York'),
        # Always synthesized; any literal copyright in the document is ignored.
        copyright=f'© {current_year} {legal.copyright_holder}. All rights reserved.',
        business=business,
        contact=contact,
        social=Social(**{platform: text(raw, f'social.{platform}') for platform in SOCIAL_PLATFORMS}),
        hours=_resolve_hours(raw),
        hours_structured=_resolve_hours_structured(raw),
        navigation=_resolve_nav_items(sequence(raw, 'navigation.main')),
        footer_links=_resolve_footer_links(raw),
        analytics=_resolve_analytics(raw),
        branding=_resolve_branding(raw),
        trust=_resolve_trust(raw, business, current_year),
        cta=_resolve_cta(raw, contact),
        services=_resolve_services(raw),
        value_props=_resolve_value_props(raw),
        features=_resolve_features(raw),
        seo=_resolve_seo(raw, business),
        legal=legal,
        reviews=_resolve_reviews(raw),
        contact_form=_resolve_contact_form(raw, business, contact),
        email=_resolve_email(raw, contact),
        admin=AdminSettings(secret_path=text(raw, 'admin.secret_path')),
    )


def full_address(config: SiteConfig) -> str:
    """Format the postal address on one line, e.g. ``123 Main St, Suite 4, Springfield, ST 12345``."""
    address = config.contact.address
    parts = [address.street]
    if address.suite:
        parts.append(address.suite)
    parts.append(f'{address.city}, {address.state} {address.zip}'.strip())
    return ', '.join(part for part in parts if part and part != ',')


def years_in_business_text(config: SiteConfig) -> str:
    years = config.trust.years_in_business
    if years < 1:
        return 'New business'
    if years == 1:
        return '1 year in business'
    return f'{years}+ years in business'
