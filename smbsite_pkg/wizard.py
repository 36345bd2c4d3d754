#!/usr/bin/env python3
"""
Interactive setup wizard for SMBSite.

Asks for the business details (optionally pre-filled by crawling an existing
website) and writes config.yaml, secrets.yaml, a placeholder logo and favicon,
and a welcome blog post.
"""

import os
import copy
import logging
import secrets
from datetime import date
from xml.sax.saxutils import escape

import yaml
from PIL import Image, ImageDraw, ImageFont

from .config import digits_only
from .crawler import SiteCrawler
from .settings import SiteSettings, ConfigError, SAMPLE_CONFIG

INDUSTRIES = ['general', 'plumbing', 'hvac', 'electrical', 'landscaping', 'construction', 'cleaning', 'other']

COLOR_PRESETS = {
    'Blue (Professional)': ('#2563eb', '#1e40af', '#f59e0b'),
    'Green (Nature/Health)': ('#059669', '#047857', '#f59e0b'),
    'Red (Bold/Urgent)': ('#dc2626', '#b91c1c', '#fbbf24'),
    'Purple (Creative)': ('#7c3aed', '#6d28d9', '#f59e0b'),
    'Orange (Energetic)': ('#ea580c', '#c2410c', '#2563eb'),
    'Custom colors': None,
}

CTA_OPTIONS = ['Get Started', 'Get a Free Quote', 'Contact Us', 'Schedule Consultation', 'Call Now', 'Custom text']

DEFAULT_ANSWERS = {
    'business': {
        'name': 'Acme Corp',
        'legal_name': '',
        'tagline': 'Quality Solutions for Your Business',
        'description': '',
        'year_founded': date.today().year,
        'industry': 'general',
    },
    'site': {
        'url': 'https://acme.com',
        'locale': 'en-US',
        'timezone': 'America/New_York',
    },
    'contact': {
        'email': 'hello@acme.com',
        'phone': '(555) 555-0100',
        'phone_raw': '+15555550100',
        'address': {
            'street': '123 Main Street',
            'suite': '',
            'city': 'Springfield',
            'state': 'ST',
            'zip': '12345',
            'country': 'USA',
        },
        'service_area': '',
    },
    'social': {
        'facebook': '',
        'instagram': '',
        'twitter': '',
        'linkedin': '',
        'youtube': '',
        'yelp': '',
        'google_business': '',
    },
    'branding': {
        'primary_color': '#2563eb',
        'secondary_color': '#1e40af',
        'accent_color': '#f59e0b',
    },
    'cta': {
        'primary_text': 'Get Started',
        'primary_url': '/contact',
    },
    'secrets': {
        'email_api_key': '',
        'admin_path': '',
    },
}

WELCOME_POST = """---
title: "Welcome to Our New Website"
description: "We're excited to launch our new website, built for speed and a great experience on any device."
pubDate: "{date}"
author: "{name} Team"
---

# Welcome to {name}

We're thrilled to announce the launch of our brand new website!

## What's New

Our new website features:

- **Fast Loading** - Built with performance in mind
- **Mobile Friendly** - Looks great on any device
- **Easy Navigation** - Find what you need quickly
- **Contact Form** - Get in touch with us easily

## Adding More Blog Posts

To add more posts, create a new `.md` file in `content/blog/` with the following format:

```markdown
---
title: "Your Post Title"
description: "A brief description of your post"
pubDate: "YYYY-MM-DD"
author: "Author Name"
---

Your content here...
```

## Get In Touch

Have questions? We'd love to hear from you! [Contact us](/contact) today.
"""


def prune_empty(data):
    """Drop empty strings and empty mappings so they don't override defaults."""
    if not isinstance(data, dict):
        return data
    pruned = {}
    for key, value in data.items():
        value = prune_empty(value)
        if value in ('', None, {}):
            continue
        pruned[key] = value
    return pruned


def strip_scheme(url):
    return url.replace('https://', '').replace('http://', '').rstrip('/')


class SetupWizard:
    """Sequential prompt loop that scaffolds a new site."""

    def __init__(self, project_root=None, input_func=input, output=print, crawler=None):
        self.project_root = project_root or os.getcwd()
        self.input = input_func
        self.output = output
        self.crawler = crawler or SiteCrawler(project_root=self.project_root)
        self.data = copy.deepcopy(DEFAULT_ANSWERS)
        self.logger = logging.getLogger('SMBSite.wizard')

    # ------------------------------------------------------------------
    # Prompt helpers
    # ------------------------------------------------------------------

    def print_header(self, title):
        self.output('')
        self.output('═' * 60)
        self.output(f'  {title}')
        self.output('═' * 60)
        self.output('')

    def prompt(self, question, default=''):
        hint = f' ({default})' if default else ''
        answer = self.input(f'{question}{hint}: ').strip()
        return answer or str(default)

    def prompt_yes_no(self, question, default_yes=True):
        hint = '[Y/n]' if default_yes else '[y/N]'
        answer = self.prompt(f'{question} {hint}', '')
        if answer == '':
            return default_yes
        return answer.lower().startswith('y')

    def prompt_choice(self, question, choices, default_index=0):
        self.output(f'\n{question}')
        for i, choice in enumerate(choices):
            marker = '→' if i == default_index else ' '
            self.output(f'  {marker} {i + 1}. {choice}')
        answer = self.prompt('Enter number', str(default_index + 1))
        try:
            index = int(answer) - 1
        except ValueError:
            return choices[default_index]
        if 0 <= index < len(choices):
            return choices[index]
        return choices[default_index]

    # ------------------------------------------------------------------
    # Data collection
    # ------------------------------------------------------------------

    def import_existing_site(self):
        """Offer to pre-fill answers from an existing website."""
        if not self.prompt_yes_no('Do you have an existing website to import data from?', False):
            return False
        url = self.prompt('Enter the website URL (e.g., https://oldsite.com)', '')
        if not url:
            return False

        self.output('ℹ Extracting data from website...')
        extracted = self.crawler.extract(url)
        if not extracted:
            self.output('⚠ Could not extract data from website. Continuing with manual entry.')
            return False

        self.data = SiteSettings.merge_overlay(self.data, prune_empty(extracted))
        self.output('✓ Data extracted successfully!')
        business = self.data['business']
        contact = self.data['contact']
        self.output(f"  • Business: {business['name']}")
        if contact.get('phone'):
            self.output(f"  • Phone: {contact['phone']}")
        if contact.get('email'):
            self.output(f"  • Email: {contact['email']}")
        return True

    def collect_business_info(self):
        self.print_header('Business Information')
        business = self.data['business']
        business['name'] = self.prompt('Business name', business['name'])
        business['legal_name'] = self.prompt('Legal name (for contracts)', business['legal_name'] or business['name'])
        business['tagline'] = self.prompt('Tagline/slogan', business['tagline'])
        business['description'] = self.prompt(
            'Business description (1-2 sentences)',
            business['description'] or f"{business['name']} provides professional services and solutions."
        )
        year = self.prompt('Year founded', str(business['year_founded']))
        try:
            business['year_founded'] = int(year)
        except ValueError:
            business['year_founded'] = date.today().year
        business['industry'] = self.prompt_choice('Industry/Category', INDUSTRIES, 0)

    def collect_site_info(self):
        self.print_header('Website Information')
        domain = self.prompt('Domain name (e.g., mybusiness.com)', strip_scheme(self.data['site']['url']))
        if not domain.startswith('http'):
            domain = f'https://{domain}'
        self.data['site']['url'] = domain.rstrip('/')

    def collect_contact_info(self):
        self.print_header('Contact Information')
        contact = self.data['contact']
        address = contact['address']
        contact['email'] = self.prompt('Email address', contact['email'])
        contact['phone'] = self.prompt('Phone number', contact['phone'])
        contact['phone_raw'] = '+1' + digits_only(contact['phone']) if digits_only(contact['phone']) else ''

        self.output('\nAddress (leave blank to skip):')
        address['street'] = self.prompt('  Street address', address['street'])
        if address['street']:
            address['suite'] = self.prompt('  Suite/Unit', '')
            address['city'] = self.prompt('  City', address['city'])
            address['state'] = self.prompt('  State', address['state'])
            address['zip'] = self.prompt('  ZIP code', address['zip'])

        contact['service_area'] = self.prompt('Service area (e.g., "Greater Chicago Area")', '')

    def collect_social_media(self):
        self.print_header('Social Media')
        self.output('ℹ Enter full URLs or leave blank to skip')
        social = self.data['social']
        for key, label in [('facebook', 'Facebook'), ('instagram', 'Instagram'), ('linkedin', 'LinkedIn'),
                           ('yelp', 'Yelp'), ('google_business', 'Google Business')]:
            social[key] = self.prompt(f'{label} URL', social[key])

    def collect_branding(self):
        self.print_header('Branding')
        branding = self.data['branding']
        choice = self.prompt_choice('Choose a color scheme', list(COLOR_PRESETS), 0)
        preset = COLOR_PRESETS[choice]
        if preset:
            branding['primary_color'], branding['secondary_color'], branding['accent_color'] = preset
        else:
            branding['primary_color'] = self.prompt('Primary color (hex)', branding['primary_color'])
            branding['secondary_color'] = self.prompt('Secondary color (hex)', branding['secondary_color'])
            branding['accent_color'] = self.prompt('Accent color (hex)', branding['accent_color'])

    def collect_cta(self):
        self.print_header('Call to Action')
        cta = self.data['cta']
        choice = self.prompt_choice('Primary CTA button text', CTA_OPTIONS, 0)
        cta['primary_text'] = self.prompt('Enter custom CTA text', 'Get Started') if choice == 'Custom text' else choice
        contact = self.data['contact']
        url_options = ['/contact', f"tel:{contact['phone_raw']}", f"mailto:{contact['email']}"]
        cta['primary_url'] = self.prompt_choice('CTA destination', url_options, 0)

    def collect_secrets(self):
        self.print_header('Integrations')
        self.output('ℹ These values are stored in secrets.yaml, not config.yaml')
        answers = self.data['secrets']
        answers['email_api_key'] = self.prompt('Email API key (leave blank to add later)', '')
        answers['admin_path'] = self.prompt('Admin panel path', answers['admin_path'] or f'admin-{secrets.token_hex(4)}')

    # ------------------------------------------------------------------
    # File generation
    # ------------------------------------------------------------------

    def load_config_template(self):
        """Start from config.example.yaml, an existing config.yaml, or the built-in sample."""
        for filename in ('config.example.yaml', 'config.yaml'):
            path = os.path.join(self.project_root, filename)
            if os.path.exists(path):
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        config = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    raise ConfigError(f"Invalid YAML in configuration template {path}: {e}", path=path) from e
                if isinstance(config, dict):
                    return config
        return yaml.safe_load(SAMPLE_CONFIG)

    def build_config(self):
        """Apply the collected answers to the config template."""
        config = self.load_config_template()
        business = self.data['business']
        site = self.data['site']
        contact = self.data['contact']
        social = self.data['social']
        branding = self.data['branding']
        cta = self.data['cta']
        domain = strip_scheme(site['url'])

        config['business'] = {
            'name': business['name'],
            'legal_name': business['legal_name'] or business['name'],
            'tagline': business['tagline'],
            'description': business['description'],
            'year_founded': business['year_founded'],
            'industry': business['industry'],
        }
        config['site'] = {
            'url': site['url'],
            'locale': site['locale'],
            'timezone': site['timezone'],
            'default_og_image': '/images/og-image.png',
        }
        config['contact'] = {
            'email': contact['email'],
            'phone': contact['phone'],
            'phone_raw': contact['phone_raw'],
            'address': dict(contact['address']),
            'service_area': contact['service_area'],
        }
        config['social'] = dict(social, tiktok='', pinterest='', nextdoor='', bbb='', whatsapp='')

        config_branding = config.setdefault('branding', {})
        if not isinstance(config_branding, dict):
            config_branding = config['branding'] = {}
        config_branding['colors'] = {
            'primary': branding['primary_color'],
            'primary_dark': branding['secondary_color'],
            'secondary': '#64748b',
            'accent': branding['accent_color'],
            'text': '#1f2937',
            'text_light': '#6b7280',
            'background': '#ffffff',
            'surface': '#f9fafb',
        }
        config['cta'] = {
            'primary': {'text': cta['primary_text'], 'url': cta['primary_url']},
            'secondary': {'text': 'Call Now', 'url': f"tel:{contact['phone_raw']}"},
            'urgency': '',
        }

        for section in ('contact_form', 'email', 'seo', 'legal'):
            if not isinstance(config.get(section), dict):
                config[section] = {}
        config['contact_form']['recipient_email'] = contact['email']
        config['contact_form']['subject_prefix'] = f"[{business['name']} Contact]"
        config['email']['from_email'] = f"{business['name']} <noreply@{domain}>"
        config['email']['reply_to'] = contact['email']
        config['seo']['title_template'] = f"%s | {business['name']}"
        config['seo']['default_title'] = f"{business['name']} - {business['tagline']}" if business['tagline'] else business['name']
        config['legal']['copyright_holder'] = business['name']
        config['legal']['privacy_email'] = contact['email']

        # Secrets never go into config.yaml
        config.get('email', {}).pop('api_key', None)
        config.pop('admin', None)
        return config

    def write_file(self, relative_path, content, mode='w'):
        path = os.path.join(self.project_root, relative_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        if 'b' in mode:
            with open(path, mode) as f:
                f.write(content)
        else:
            with open(path, mode, encoding='utf-8') as f:
                f.write(content)
        return path

    def generate_config(self, config=None):
        if config is None:
            config = self.build_config()
        content = yaml.safe_dump(config, sort_keys=False, allow_unicode=True, width=1000)
        path = self.write_file('config.yaml', content)
        self.output('✓ Generated config.yaml')
        return path

    def build_secrets(self):
        """
        Merge the collected secrets over any existing secrets.yaml.

        Raises:
            ConfigError: If the existing secrets.yaml cannot be parsed.
        """
        answers = self.data['secrets']
        existing = SiteSettings(self.project_root).load_secrets()
        overlay = prune_empty({
            'email': {'api_key': answers['email_api_key']},
            'admin': {'secret_path': answers['admin_path']},
        })
        return SiteSettings.merge_overlay(existing, overlay)

    def generate_secrets(self, merged=None):
        """Write secrets.yaml, keeping any values already there."""
        if merged is None:
            merged = self.build_secrets()
        path = self.write_file('secrets.yaml', '# Sensitive settings. Do not commit this file.\n'
                               + yaml.safe_dump(merged, sort_keys=False))
        self.ensure_gitignored('secrets.yaml')
        self.output('✓ Generated secrets.yaml')
        return path

    def ensure_gitignored(self, filename):
        gitignore = os.path.join(self.project_root, '.gitignore')
        lines = []
        if os.path.exists(gitignore):
            with open(gitignore, 'r', encoding='utf-8') as f:
                lines = f.read().splitlines()
        if filename not in lines:
            lines.append(filename)
            with open(gitignore, 'w', encoding='utf-8') as f:
                f.write('\n'.join(lines) + '\n')

    def generate_logo(self):
        name = self.data['business']['name']
        color = self.data['branding']['primary_color']
        logo_svg = f"""<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 60" width="200" height="60">
  <rect width="200" height="60" fill="transparent"/>
  <text x="10" y="40" font-family="system-ui, -apple-system, sans-serif" font-size="24" font-weight="bold" fill="{color}">{escape(name)}</text>
</svg>
"""
        path = self.write_file(os.path.join('public', 'images', 'logo.svg'), logo_svg)
        self.output('✓ Generated placeholder logo (public/images/logo.svg)')
        return path

    def favicon_initial(self):
        name = self.data['business']['name'].strip()
        return name[0].upper() if name else 'A'

    def generate_favicon(self):
        """Write favicon.svg plus PNG and ICO renderings."""
        initial = self.favicon_initial()
        color = self.data['branding']['primary_color']
        favicon_svg = f"""<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 32 32" width="32" height="32">
  <rect width="32" height="32" rx="4" fill="{color}"/>
  <text x="16" y="23" font-family="system-ui, -apple-system, sans-serif" font-size="20" font-weight="bold" fill="white" text-anchor="middle">{escape(initial)}</text>
</svg>
"""
        svg_path = self.write_file(os.path.join('public', 'favicon.svg'), favicon_svg)

        image = self.render_favicon_image(initial, color)
        png_path = os.path.join(self.project_root, 'public', 'favicon.png')
        ico_path = os.path.join(self.project_root, 'public', 'favicon.ico')
        try:
            image.save(png_path, 'PNG')
            image.save(ico_path, 'ICO', sizes=[(16, 16), (32, 32), (48, 48)])
        except (IOError, OSError) as e:
            self.logger.error(f"Failed to write favicon images: {e}")
            self.output('⚠ Could not render favicon.png/favicon.ico')
            return svg_path

        self.output('✓ Generated favicon (public/favicon.svg, favicon.png, favicon.ico)')
        return svg_path

    def render_favicon_image(self, initial, color, size=64):
        """Render the favicon as a Pillow image: a rounded square with the initial."""
        try:
            image = Image.new('RGBA', (size, size), (0, 0, 0, 0))
            draw = ImageDraw.Draw(image)
            draw.rounded_rectangle((0, 0, size - 1, size - 1), radius=size // 8, fill=color)
        except ValueError:
            self.logger.warning(f"Invalid favicon color {color!r}, using default")
            return self.render_favicon_image(initial, DEFAULT_ANSWERS['branding']['primary_color'], size)

        font = ImageFont.load_default()
        left, top, right, bottom = draw.textbbox((0, 0), initial, font=font)
        position = ((size - (right - left)) / 2 - left, (size - (bottom - top)) / 2 - top)
        draw.text(position, initial, fill='white', font=font)
        return image

    def generate_blog_post(self):
        post = WELCOME_POST.format(date=date.today().isoformat(), name=self.data['business']['name'])
        path = self.write_file(os.path.join('content', 'blog', 'welcome-to-our-website.md'), post)
        self.output('✓ Generated welcome blog post')
        return path

    def run(self):
        """Run the full wizard."""
        self.output('')
        self.output('  🚀 SMBSite - Site Setup')
        self.output('  Configure your new website in minutes')
        self.output('')

        self.import_existing_site()
        self.collect_business_info()
        self.collect_site_info()
        self.collect_contact_info()
        self.collect_social_media()
        self.collect_branding()
        self.collect_cta()
        self.collect_secrets()

        # Read everything that can fail before the first file is written
        config = self.build_config()
        secrets_data = self.build_secrets()

        self.print_header('Generating Files')
        self.generate_config(config)
        self.generate_secrets(secrets_data)
        self.generate_logo()
        self.generate_favicon()
        self.generate_blog_post()

        self.output('')
        self.output('✅ Setup Complete!')
        self.output('')
        self.output('Next steps:')
        self.output('  1. Review config.yaml and make any adjustments')
        self.output('  2. Replace public/images/logo.svg with your actual logo')
        self.output("  3. Run 'smbsite' to build your site")
        self.output('')


