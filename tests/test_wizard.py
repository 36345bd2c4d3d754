"""Tests for the interactive setup wizard."""

import pytest
import os
from pathlib import Path
from unittest.mock import Mock

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import yaml
from PIL import Image

from smbsite_pkg.settings import SiteSettings, ConfigError
from smbsite_pkg.wizard import SetupWizard, COLOR_PRESETS, prune_empty, strip_scheme


def scripted(*answers):
    """input() stand-in returning answers in order, then blanks."""
    remaining = list(answers)

    def fake_input(prompt=''):
        return remaining.pop(0) if remaining else ''
    return fake_input


@pytest.fixture
def mock_crawler():
    crawler = Mock()
    crawler.extract.return_value = None
    return crawler


@pytest.fixture
def make_wizard(temp_dir, mock_crawler):
    def factory(*answers):
        return SetupWizard(
            project_root=temp_dir,
            input_func=scripted(*answers),
            output=Mock(),
            crawler=mock_crawler,
        )
    return factory


class TestHelpers:
    """Test cases for module helpers."""

    def test_prune_empty(self):
        data = {'a': '', 'b': {'c': '', 'd': 'x'}, 'e': {'f': None}, 'g': 0}
        assert prune_empty(data) == {'b': {'d': 'x'}, 'g': 0}

    def test_strip_scheme(self):
        assert strip_scheme('https://acme.com/') == 'acme.com'
        assert strip_scheme('http://acme.com') == 'acme.com'


class TestPrompts:
    """Test cases for prompt helpers."""

    def test_prompt_default(self, make_wizard):
        assert make_wizard('').prompt('Name', 'Acme') == 'Acme'
        assert make_wizard('  Bright  ').prompt('Name', 'Acme') == 'Bright'

    def test_prompt_yes_no(self, make_wizard):
        assert make_wizard('').prompt_yes_no('Continue?', True) is True
        assert make_wizard('').prompt_yes_no('Continue?', False) is False
        assert make_wizard('Yes').prompt_yes_no('Continue?', False) is True
        assert make_wizard('n').prompt_yes_no('Continue?', True) is False

    @pytest.mark.parametrize('answer,expected', [('2', 'b'), ('', 'a'), ('abc', 'a'), ('99', 'a'), ('0', 'a')])
    def test_prompt_choice(self, make_wizard, answer, expected):
        assert make_wizard(answer).prompt_choice('Pick', ['a', 'b', 'c'], 0) == expected


class TestCollection:
    """Test cases for the data collection steps."""

    def test_import_declined(self, make_wizard, mock_crawler):
        assert make_wizard('n').import_existing_site() is False
        mock_crawler.extract.assert_not_called()

    def test_import_failure_falls_back(self, make_wizard, mock_crawler):
        wizard = make_wizard('y', 'https://old.example.com')

        assert wizard.import_existing_site() is False
        mock_crawler.extract.assert_called_once_with('https://old.example.com')
        assert wizard.data['business']['name'] == 'Acme Corp'

    def test_import_prefills_answers(self, make_wizard, mock_crawler):
        mock_crawler.extract.return_value = {
            'business': {'name': 'Old Site Co', 'tagline': ''},
            'contact': {'phone': '(555) 123-4567', 'address': {'city': 'Shelbyville'}},
        }
        wizard = make_wizard('y', 'https://old.example.com')

        assert wizard.import_existing_site() is True
        assert wizard.data['business']['name'] == 'Old Site Co'
        # Empty extracted values keep the defaults
        assert wizard.data['business']['tagline'] == 'Quality Solutions for Your Business'
        assert wizard.data['contact']['address']['city'] == 'Shelbyville'
        assert wizard.data['contact']['address']['street'] == '123 Main Street'

    def test_collect_business_info(self, make_wizard):
        wizard = make_wizard('Bright Plumbing', '', 'We fix pipes', '', 'nineteen', '2')
        wizard.collect_business_info()
        business = wizard.data['business']

        assert business['name'] == 'Bright Plumbing'
        assert business['legal_name'] == 'Bright Plumbing'
        assert business['tagline'] == 'We fix pipes'
        assert business['description'] == 'Bright Plumbing provides professional services and solutions.'
        assert isinstance(business['year_founded'], int)
        assert business['industry'] == 'plumbing'

    def test_collect_site_info_adds_scheme(self, make_wizard):
        wizard = make_wizard('brightplumbing.com/')
        wizard.collect_site_info()
        assert wizard.data['site']['url'] == 'https://brightplumbing.com'

    def test_collect_contact_info(self, make_wizard):
        wizard = make_wizard('a@b.com', '(555) 123-4567', '1 Elm St', '', 'Town', 'ST', '11111', 'Tri-county')
        wizard.collect_contact_info()
        contact = wizard.data['contact']

        assert contact['phone_raw'] == '+15551234567'
        assert contact['address']['street'] == '1 Elm St'
        assert contact['address']['zip'] == '11111'
        assert contact['service_area'] == 'Tri-county'

    def test_collect_branding_preset(self, make_wizard):
        wizard = make_wizard('2')
        wizard.collect_branding()
        primary, secondary, accent = COLOR_PRESETS['Green (Nature/Health)']

        assert wizard.data['branding'] == {
            'primary_color': primary, 'secondary_color': secondary, 'accent_color': accent,
        }

    def test_collect_branding_custom(self, make_wizard):
        wizard = make_wizard(str(len(COLOR_PRESETS)), '#111111', '#222222', '#333333')
        wizard.collect_branding()
        assert wizard.data['branding']['accent_color'] == '#333333'

    def test_collect_cta(self, make_wizard):
        wizard = make_wizard('2', '2')
        wizard.collect_cta()

        assert wizard.data['cta']['primary_text'] == 'Get a Free Quote'
        assert wizard.data['cta']['primary_url'] == 'tel:+15555550100'

    def test_collect_secrets_generates_admin_path(self, make_wizard):
        wizard = make_wizard('re_key')
        wizard.collect_secrets()

        assert wizard.data['secrets']['email_api_key'] == 're_key'
        assert wizard.data['secrets']['admin_path'].startswith('admin-')


class TestFileGeneration:
    """Test cases for generated files."""

    def test_build_config_keeps_secrets_out(self, make_wizard, temp_dir):
        Path(temp_dir, 'config.example.yaml').write_text(yaml.safe_dump({
            'features': {'blog': False},
            'email': {'api_key': 'leaked', 'provider': 'resend'},
            'admin': {'secret_path': 'admin-leak'},
        }))
        config = make_wizard().build_config()

        assert config['features'] == {'blog': False}
        assert 'api_key' not in config['email']
        assert 'admin' not in config
        assert config['email']['from_email'] == 'Acme Corp <noreply@acme.com>'

    def test_generate_secrets_merges_existing(self, make_wizard, temp_dir):
        Path(temp_dir, 'secrets.yaml').write_text('email:\n  api_key: existing\n')
        wizard = make_wizard()
        wizard.data['secrets']['admin_path'] = 'admin-1234'
        wizard.generate_secrets()

        secrets = SiteSettings(temp_dir).load_secrets()
        assert secrets == {'email': {'api_key': 'existing'}, 'admin': {'secret_path': 'admin-1234'}}
        assert 'secrets.yaml' in Path(temp_dir, '.gitignore').read_text().splitlines()

    def test_gitignore_not_duplicated(self, make_wizard, temp_dir):
        Path(temp_dir, '.gitignore').write_text('node_modules\nsecrets.yaml\n')
        make_wizard().ensure_gitignored('secrets.yaml')
        assert Path(temp_dir, '.gitignore').read_text() == 'node_modules\nsecrets.yaml\n'

    def test_logo_escapes_name(self, make_wizard, temp_dir):
        wizard = make_wizard()
        wizard.data['business']['name'] = 'Smith & Sons <Plumbing>'
        wizard.generate_logo()
        svg = Path(temp_dir, 'public', 'images', 'logo.svg').read_text()

        assert 'Smith &amp; Sons &lt;Plumbing&gt;' in svg

    def test_favicon_files(self, make_wizard, temp_dir):
        wizard = make_wizard()
        wizard.data['business']['name'] = 'bright'
        wizard.generate_favicon()

        assert '>B</text>' in Path(temp_dir, 'public', 'favicon.svg').read_text()
        with Image.open(Path(temp_dir, 'public', 'favicon.png')) as image:
            assert image.size == (64, 64)
        assert Path(temp_dir, 'public', 'favicon.ico').exists()

    def test_favicon_bad_color_falls_back(self, make_wizard):
        image = make_wizard().render_favicon_image('A', 'not-a-color')
        assert image.getpixel((32, 2))[:3] == (0x25, 0x63, 0xeb)

    def test_blog_post(self, make_wizard, temp_dir):
        make_wizard().generate_blog_post()
        post = Path(temp_dir, 'content', 'blog', 'welcome-to-our-website.md').read_text()

        assert post.startswith('---\ntitle: "Welcome to Our New Website"')
        assert 'author: "Acme Corp Team"' in post


class TestRun:
    """End-to-end wizard runs."""

    def test_run_with_defaults_produces_loadable_site(self, make_wizard, temp_dir):
        make_wizard().run()

        for parts in [
            ('config.yaml',),
            ('secrets.yaml',),
            ('public', 'images', 'logo.svg'),
            ('public', 'favicon.svg'),
            ('public', 'favicon.png'),
            ('content', 'blog', 'welcome-to-our-website.md'),
        ]:
            assert Path(temp_dir, *parts).exists(), parts

        config = SiteSettings(temp_dir).load()
        assert config.name == 'Acme Corp'
        assert config.contact.phone_raw == '+15555550100'
        assert config.cta.secondary.url == 'tel:+15555550100'
        assert config.admin.secret_path.startswith('admin-')
        assert config.email.api_key == ''

    def test_malformed_secrets_stops_before_writing(self, make_wizard, temp_dir):
        Path(temp_dir, 'secrets.yaml').write_text('email: [unclosed\n')

        with pytest.raises(ConfigError):
            make_wizard().run()

        assert not Path(temp_dir, 'config.yaml').exists()
        assert not Path(temp_dir, 'public').exists()
        assert Path(temp_dir, 'secrets.yaml').read_text() == 'email: [unclosed\n'

    def test_malformed_template_stops_before_writing(self, make_wizard, temp_dir):
        Path(temp_dir, 'config.example.yaml').write_text('business: [unclosed\n')

        with pytest.raises(ConfigError, match='config.example.yaml'):
            make_wizard().run()

        assert not Path(temp_dir, 'config.yaml').exists()
        assert not Path(temp_dir, 'secrets.yaml').exists()

    def test_run_with_answers(self, make_wizard, temp_dir):
        make_wizard(
            'n',                                              # import
            'Bright Plumbing', '', 'We fix pipes', 'Plumbers.', '2015', '2',
            'brightplumbing.com',
            'hi@brightplumbing.com', '555-867-5309', '', '', '', '', '', '',
            'https://facebook.com/bright', '', '', '', '',
            '3',                                              # colours
            '1', '1',                                         # cta
            're_live_key', 'admin-secret',
        ).run()

        config = SiteSettings(temp_dir).load(current_year=2025)
        assert config.name == 'Bright Plumbing'
        assert config.business.industry == 'plumbing'
        assert config.trust.years_in_business == 10
        assert config.url == 'https://brightplumbing.com'
        assert config.contact.phone_raw == '+15558675309'
        assert config.social.facebook == 'https://facebook.com/bright'
        assert config.branding.colors.primary == '#dc2626'
        assert config.email.api_key == 're_live_key'
        assert config.admin.secret_path == 'admin-secret'
        assert config.seo.title_template == '%s | Bright Plumbing'
        assert 're_live_key' not in Path(temp_dir, 'config.yaml').read_text()
