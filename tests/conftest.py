"""Test configuration and fixtures for SMBSite tests."""

import pytest
import tempfile
import shutil
import json
import os
from pathlib import Path
from unittest.mock import Mock
import yaml

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from smbsite_pkg.config import resolve


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def raw_config():
    """A representative config.yaml tree."""
    return {
        'business': {
            'name': 'Bright Plumbing',
            'tagline': 'Fast, honest plumbing',
            'description': 'Family-owned plumbers serving Springfield.',
            'year_founded': 2015,
            'industry': 'plumbing',
        },
        'site': {'url': 'https://brightplumbing.com'},
        'contact': {
            'email': 'hello@brightplumbing.com',
            'phone': '(555) 555-0100',
            'address': {
                'street': '42 Pipe Lane',
                'city': 'Springfield',
                'state': 'IL',
                'zip': 62701,
            },
        },
        'hours': {
            'display': 'Mon-Sat: 8AM-6PM',
            'detailed': {'monday': '8:00 AM - 6:00 PM', 'sunday': 'Closed'},
        },
        'navigation': {
            'main': [{'name': 'Home', 'href': '/'}, {'name': 'Contact', 'href': '/contact'}],
        },
        'services': {
            'items': [{'name': 'Drain Cleaning', 'description': 'Clogs cleared same day.'}],
        },
        'reviews': {
            'enabled': True,
            'pages': [
                {'path': '/', 'layout': 'featured', 'position': 'before-cta', 'max_reviews': 2},
                {'path': '/about', 'position': 'after-cta'},
            ],
            'tagged': {
                'r1': ['/', '/about'],
                'r2': ['/'],
                'r3': ['/'],
                'r4': '/about',
            },
        },
    }


@pytest.fixture
def site_config(raw_config):
    """The resolved form of raw_config, pinned to 2025."""
    return resolve(raw_config, current_year=2025)


@pytest.fixture
def config_dir(temp_dir, raw_config):
    """A project directory holding config.yaml."""
    config_path = Path(temp_dir) / 'config.yaml'
    config_path.write_text(yaml.safe_dump(raw_config))
    return temp_dir


@pytest.fixture
def reviews_data():
    """Review dataset in data/reviews.json shape."""
    return {
        'reviews': [
            {'id': 'r3', 'author': 'Carol', 'rating': 4, 'date': '2024-02-01', 'text': 'Good job.', 'hasPhoto': False},
            {'id': 'r1', 'author': 'Alice', 'rating': 5, 'date': '2024-01-10', 'text': 'Excellent!', 'hasPhoto': True},
            {'id': 'r2', 'author': 'Bob', 'rating': 5, 'date': '2024-01-20', 'text': 'Very quick.', 'hasPhoto': False},
            {'id': 'r4', 'author': 'Dan', 'rating': 3, 'date': '2024-03-05', 'text': 'Fine.', 'hasPhoto': False},
            {'id': 'r5', 'author': 'Eve', 'rating': 5, 'date': '2024-03-06', 'text': 'Untagged.', 'hasPhoto': False},
        ]
    }


@pytest.fixture
def reviews_file(temp_dir, reviews_data):
    """Write the review dataset to data/reviews.json."""
    data_dir = Path(temp_dir) / 'data'
    data_dir.mkdir(exist_ok=True)
    reviews_path = data_dir / 'reviews.json'
    reviews_path.write_text(json.dumps(reviews_data))
    return str(reviews_path)


@pytest.fixture
def mock_content_dir(temp_dir):
    """Create a content directory with blog posts."""
    blog_dir = Path(temp_dir) / 'content' / 'blog'
    blog_dir.mkdir(parents=True)

    (blog_dir / 'first-post.md').write_text("""---
title: First Post
description: The very first post
pubDate: 2024-01-01
author: Jane
---

# First Post

Hello **world**.
""")

    (blog_dir / 'second-post.md').write_text("""---
title: Second Post
pubDate: "2024-02-15"
---

Newer content.
""")

    (blog_dir / 'draft-post.md').write_text("""---
title: Draft
draft: true
---

Not ready.
""")

    return str(Path(temp_dir) / 'content')


@pytest.fixture
def mock_assets_dir(temp_dir):
    """Create an assets directory with CSS and JS."""
    assets_dir = Path(temp_dir) / 'assets'
    (assets_dir / 'css').mkdir(parents=True)
    (assets_dir / 'js').mkdir(parents=True)
    (assets_dir / 'css' / 'site.css').write_text("body {\n    color: red;\n}\n")
    (assets_dir / 'js' / 'site.js').write_text("function hello() {\n    return 1;\n}\n")
    return str(assets_dir)


@pytest.fixture
def mock_output_dir(temp_dir):
    """Output directory path (created by the builder)."""
    return str(Path(temp_dir) / 'output')


@pytest.fixture
def log_dir(temp_dir):
    return str(Path(temp_dir) / 'logs')


@pytest.fixture
def mock_session():
    """Create a mock requests session."""
    session = Mock()
    response = Mock()
    response.raise_for_status.return_value = None
    session.post.return_value = response
    return session
