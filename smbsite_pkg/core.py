import os
import re
import shutil
import logging
from datetime import datetime, date
from xml.sax.saxutils import escape

import yaml
import mistune
import csscompressor
import rjsmin
from jinja2 import Environment, FileSystemLoader, TemplateNotFound, TemplateSyntaxError, select_autoescape

from .config import SiteConfig, full_address, years_in_business_text
from .reviews import ReviewsAccessor

PACKAGE_TEMPLATES = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')

# (template, page path, page title) for the fixed marketing pages
STATIC_PAGES = [
    ('index.html', '/', None),
    ('about.html', '/about', 'About Us'),
    ('contact.html', '/contact', 'Contact Us'),
    ('privacy.html', '/privacy', 'Privacy Policy'),
    ('terms.html', '/terms', 'Terms of Service'),
]


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Site build completed in",
            "Total pages generated:",
            "Total posts generated:",
            "Building blog",
            "Building 404 page",
            "Generating theme stylesheet",
            "Generating XML sitemap",
            "Generating robots.txt",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


def create_markdown_parser():
    """Create a Mistune markdown parser with a custom renderer."""
    class CustomRenderer(mistune.HTMLRenderer):
        def __init__(self):
            super().__init__(escape=False)
        def block_code(self, code, info=None):
            escaped_code = mistune.escape(code)
            return '<pre style="white-space: pre-wrap;"><code>{}</code></pre>'.format(escaped_code)
    return mistune.create_markdown(
        renderer=CustomRenderer(),
        plugins=['table', 'task_lists', 'strikethrough']
    )


class SiteBuilder:
    """Render the marketing site described by a resolved SiteConfig."""

    def __init__(self, config: SiteConfig, templates_dir=None, content_dir='content', output_dir='output',
                 assets_dir='assets', public_dir='public', reviews=None, minify=False, log_dir=None):
        """
        Args:
            log_dir: Directory for the per-run log file (default: ./logs).
                Handlers are attached to the shared ``SMBSite`` logger only
                by the first builder in a process; later builders log to that
                same file and their ``log_dir`` is ignored.
        """
        self.config = config
        self.templates_dir = templates_dir or PACKAGE_TEMPLATES
        self.content_dir = content_dir
        self.output_dir = output_dir
        self.assets_dir = assets_dir
        self.public_dir = public_dir
        self.reviews = reviews or ReviewsAccessor(config)
        self.minify = minify
        self.log_dir = log_dir
        self.pages_generated = 0
        self.posts_generated = 0
        self.posts = []

        # Fall back to the packaged templates when the project has none
        if not os.path.isabs(self.templates_dir) and not os.path.exists(self.templates_dir):
            self.templates_dir = PACKAGE_TEMPLATES

        self.setup_logging()
        os.makedirs(self.output_dir, exist_ok=True)

        self.env = Environment(
            loader=FileSystemLoader(self.templates_dir),
            autoescape=select_autoescape(['html', 'xml'])
        )
        self.markdown_parser = create_markdown_parser()

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('SMBSite')
        self.logger.setLevel(logging.DEBUG)

        if not self.logger.handlers:
            # Console handler with filter
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.addFilter(InfoFilter())
            console_handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(console_handler)

            # File handler for all logs
            logs_dir = self.log_dir or os.path.join(os.getcwd(), 'logs')
            os.makedirs(logs_dir, exist_ok=True)
            log_filename = datetime.now().strftime('smbsite_%Y-%m-%d_%H-%M-%S.log')
            file_handler = logging.FileHandler(os.path.join(logs_dir, log_filename))
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            self.logger.addHandler(file_handler)

    def parse_date(self, date_str):
        """Parse a date string."""
        if isinstance(date_str, datetime):
            return date_str
        elif isinstance(date_str, date):
            return datetime(date_str.year, date_str.month, date_str.day)
        elif isinstance(date_str, str):
            for fmt in ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%d', '%b %d, %Y']:
                try:
                    return datetime.strptime(date_str, fmt)
                except ValueError:
                    continue
        return datetime.min

    def format_date(self, date_str=None):
        """Format a date for display."""
        date_obj = datetime.now() if date_str is None else self.parse_date(date_str)
        if date_obj == datetime.min:
            return ''
        return date_obj.strftime('%B %d, %Y')

    def parse_markdown_with_metadata(self, filepath):
        """Parse a markdown file with YAML front matter."""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to read markdown file {filepath}: {e}")
            return {}, ""

        parts = content.split('---', 2)
        if len(parts) >= 3 and not parts[0].strip():
            try:
                metadata = yaml.safe_load(parts[1]) or {}
            except yaml.YAMLError as e:
                self.logger.error(f"Invalid YAML front matter in {filepath}: {e}")
                metadata = {}
            markdown_content = parts[2].strip()
        else:
            metadata = {}
            markdown_content = content

        if not isinstance(metadata, dict):
            metadata = {}
        return metadata, markdown_content

    def generate_excerpt(self, content):
        """Generate an excerpt from content."""
        plain_text = re.sub(r'<[^>]+>', '', content)
        words = plain_text.split()
        if len(words) > 30:
            return ' '.join(words[:30]) + '...'
        return ' '.join(words)

    def calculate_relative_path(self, current_output_dir):
        """Calculate relative path from current directory to root."""
        rel_path = os.path.relpath(self.output_dir, current_output_dir)
        if rel_path == '.':
            return ''
        return rel_path + '/'

    def page_output_dir(self, path):
        """Map a site path such as '/about' to its output directory."""
        slug = path.strip('/')
        return os.path.join(self.output_dir, *slug.split('/')) if slug else self.output_dir

    def base_context(self, path, title=None, description=None):
        """Template context shared by every page."""
        config = self.config
        page_reviews, review_config = self.reviews.reviews_for_page(path)
        return {
            'site': config,
            'page': {
                'path': path,
                'title': title or config.seo.default_title,
                'description': description or config.seo.default_description,
            },
            'title': config.seo.format_title(title),
            'reviews': page_reviews,
            'review_config': review_config,
            'full_address': full_address(config),
            'years_in_business': years_in_business_text(config),
            'relative_path': self.calculate_relative_path(self.page_output_dir(path)),
            'recent_posts': self.posts[:3],
            'minify': self.minify,
        }

    def render_template(self, template_name, **context):
        """Render a Jinja2 template, returning None on template errors."""
        try:
            template = self.env.get_template(template_name)
            return template.render(**context)
        except (TemplateNotFound, TemplateSyntaxError) as e:
            self.logger.error(f"Template error in {template_name}: {e}")
            return None

    def write_page(self, output_dir, html, filename='index.html'):
        """Write rendered HTML to disk."""
        os.makedirs(output_dir, exist_ok=True)
        output_path = os.path.join(output_dir, filename)
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(html)
            self.logger.debug(f"Generated HTML: {output_path}")
            return True
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to write HTML file {output_path}: {e}")
            return False

    def load_posts(self):
        """Read blog posts from content/blog, newest first."""
        blog_dir = os.path.join(self.content_dir, 'blog')
        posts = []
        if not os.path.isdir(blog_dir):
            return posts

        for file in sorted(os.listdir(blog_dir)):
            if not file.endswith('.md'):
                continue
            file_path = os.path.join(blog_dir, file)
            metadata, markdown_content = self.parse_markdown_with_metadata(file_path)
            if metadata.get('draft'):
                continue
            slug = str(metadata.get('slug') or os.path.splitext(file)[0])
            html_content = self.markdown_parser(markdown_content)
            pub_date = metadata.get('pubDate') or metadata.get('date')
            posts.append({
                'slug': slug,
                'path': f'/blog/{slug}',
                'permalink': f'blog/{slug}/',
                'title': str(metadata.get('title') or 'Untitled'),
                'description': str(metadata.get('description') or ''),
                'author': str(metadata.get('author') or f'{self.config.name} Team'),
                'parsed_date': self.parse_date(pub_date),
                'date': self.format_date(pub_date) if pub_date else '',
                'excerpt': metadata.get('excerpt') or self.generate_excerpt(html_content),
                'content': html_content,
            })

        posts.sort(key=lambda p: p['parsed_date'], reverse=True)
        return posts

    def build_static_pages(self):
        """Render the fixed marketing pages."""
        show_form = self.config.features.contact_form and self.config.contact_form.enabled
        for template_name, path, title in STATIC_PAGES:
            html = self.render_template(template_name, show_form=show_form, **self.base_context(path, title))
            if html is not None and self.write_page(self.page_output_dir(path), html):
                self.pages_generated += 1

    def build_blog(self):
        """Render the blog index and one page per post."""
        if not self.config.features.blog:
            self.logger.info("Blog disabled, skipping blog pages")
            return

        self.logger.info(f"Building blog with {len(self.posts)} posts")
        html = self.render_template('blog.html', posts=self.posts, **self.base_context('/blog', 'Blog'))
        if html is not None and self.write_page(self.page_output_dir('/blog'), html):
            self.pages_generated += 1

        for post in self.posts:
            context = self.base_context(post['path'], post['title'], post['description'])
            html = self.render_template('post.html', post=post, **context)
            if html is not None and self.write_page(self.page_output_dir(post['path']), html):
                self.posts_generated += 1

    def build_404_page(self):
        """Build 404 error page."""
        context = self.base_context('/404', 'Page Not Found')
        context['relative_path'] = ''
        html = self.render_template('404.html', **context)
        if html is not None:
            self.write_page(self.output_dir, html, filename='404.html')
        self.logger.info("Building 404 page")

    def theme_css(self):
        """CSS custom properties derived from the branding section."""
        branding = self.config.branding
        colors = branding.colors
        return f""":root {{
  --color-primary: {colors.primary};
  --color-primary-dark: {colors.primary_dark};
  --color-secondary: {colors.secondary};
  --color-accent: {colors.accent};
  --color-text: {colors.text};
  --color-text-light: {colors.text_light};
  --color-background: {colors.background};
  --color-surface: {colors.surface};
  --font-heading: '{branding.fonts.heading}', system-ui, sans-serif;
  --font-body: '{branding.fonts.body}', system-ui, sans-serif;
}}

body {{
  margin: 0;
  font-family: var(--font-body);
  color: var(--color-text);
  background: var(--color-background);
}}

h1, h2, h3, h4 {{
  font-family: var(--font-heading);
}}

a {{
  color: var(--color-primary);
}}

.btn-primary {{
  background: var(--color-primary);
  color: #fff;
}}

.btn-primary:hover {{
  background: var(--color-primary-dark);
}}

.section-alt {{
  background: var(--color-surface);
}}

.text-muted {{
  color: var(--color-text-light);
}}
"""

    def generate_theme_css(self):
        """Write assets/css/theme.css from the branding colors and fonts."""
        css_dir = os.path.join(self.output_dir, 'assets', 'css')
        os.makedirs(css_dir, exist_ok=True)
        css = self.theme_css()
        theme_path = os.path.join(css_dir, 'theme.css')
        try:
            with open(theme_path, 'w', encoding='utf-8') as f:
                f.write(css)
            self.logger.info("Generating theme stylesheet")
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to write theme stylesheet {theme_path}: {e}")
            return False
        return True

    def copy_assets_to_output(self):
        """Copy the assets directory to output/assets."""
        if not self.assets_dir or not os.path.isdir(self.assets_dir):
            self.logger.debug("No assets directory to copy")
            return

        output_assets_dir = os.path.join(self.output_dir, 'assets')
        try:
            if os.path.exists(output_assets_dir):
                shutil.rmtree(output_assets_dir)
            shutil.copytree(self.assets_dir, output_assets_dir)
            self.logger.debug(f"Copied assets from {self.assets_dir}")
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to copy assets from {self.assets_dir}: {e}")

    def copy_public_files(self):
        """Copy public/ (logo, favicons, images) into the output root as-is."""
        if not self.public_dir or not os.path.isdir(self.public_dir):
            return

        try:
            shutil.copytree(self.public_dir, self.output_dir, dirs_exist_ok=True)
            self.logger.debug(f"Copied public files from {self.public_dir}")
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to copy public files from {self.public_dir}: {e}")

    def minify_assets(self):
        """Minify CSS and JS assets into .min.css / .min.js siblings."""
        assets_output_dir = os.path.join(self.output_dir, 'assets')
        minifiers = [
            ('css', '.css', '.min.css', csscompressor.compress),
            ('js', '.js', '.min.js', rjsmin.jsmin),
        ]

        for subdir, ext, min_ext, minifier in minifiers:
            asset_dir = os.path.join(assets_output_dir, subdir)
            if not os.path.exists(asset_dir):
                continue
            for file in os.listdir(asset_dir):
                if not file.endswith(ext) or file.endswith(min_ext):
                    continue
                source_path = os.path.join(asset_dir, file)
                minified_path = os.path.join(asset_dir, file[:-len(ext)] + min_ext)
                try:
                    with open(source_path, 'r', encoding='utf-8') as f:
                        source = f.read()
                    with open(minified_path, 'w', encoding='utf-8') as f:
                        f.write(minifier(source))
                    self.logger.debug(f"Minified {subdir.upper()}: {file}")
                except (IOError, OSError, PermissionError) as e:
                    self.logger.error(f"Failed to minify {file}: {e}")

    def site_paths(self):
        """Every page path the build produces, for the sitemap."""
        paths = [path for _, path, _ in STATIC_PAGES]
        if self.config.features.blog:
            paths.append('/blog')
            paths.extend(post['path'] for post in self.posts)
        return paths

    def generate_xml_sitemap(self):
        """Generate XML sitemap. Requires site.url."""
        site_url = self.config.url.rstrip('/')
        if not site_url:
            self.logger.debug("Skipping XML sitemap (no site url)")
            return False

        post_dates = {post['path']: post['parsed_date'] for post in self.posts}
        sitemap_content = '''<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
'''
        for path in self.site_paths():
            lastmod = post_dates.get(path)
            if not lastmod or lastmod == datetime.min:
                lastmod = datetime.now()
            url = site_url + (path if path == '/' else path + '/')
            sitemap_content += self.format_xml_sitemap_entry(url, lastmod)
        sitemap_content += '</urlset>'

        sitemap_file = os.path.join(self.output_dir, 'sitemap.xml')
        try:
            with open(sitemap_file, 'w', encoding='utf-8') as f:
                f.write(sitemap_content)
            self.logger.info("Generating XML sitemap")
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to write sitemap file {sitemap_file}: {e}")
            return False
        return True

    def format_xml_sitemap_entry(self, url, lastmod):
        """Format a single sitemap entry."""
        return f'''<url>
<loc>{escape(url)}</loc>
<lastmod>{lastmod.strftime('%Y-%m-%d')}</lastmod>
</url>
'''

    def generate_robots_txt(self):
        """Generate robots.txt. The admin path is secret and never listed here."""
        lines = ["User-agent: *", "Allow: /"]
        if self.config.url:
            lines.extend(["", f"Sitemap: {self.config.url.rstrip('/')}/sitemap.xml"])

        robots_file = os.path.join(self.output_dir, 'robots.txt')
        try:
            with open(robots_file, 'w', encoding='utf-8') as f:
                f.write('\n'.join(lines) + '\n')
            self.logger.info("Generating robots.txt")
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to write robots.txt file {robots_file}: {e}")
            return False
        return True

    def build(self):
        """Main build process."""
        self.logger.info("Starting site build...")

        self.copy_public_files()
        self.copy_assets_to_output()
        self.generate_theme_css()
        if self.minify:
            self.minify_assets()

        self.posts = self.load_posts() if self.config.features.blog else []
        self.build_static_pages()
        self.build_blog()
        self.build_404_page()

        self.generate_xml_sitemap()
        self.generate_robots_txt()
