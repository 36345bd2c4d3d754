"""
Bridge to the external site-crawl tool used to pre-fill the setup wizard.

The tool lives outside this repository (``csp.py``). It is invoked as a
blocking subprocess with a timeout; any failure, including the tool not being
installed, yields ``None`` so the wizard can fall back to manual entry.
"""

import os
import sys
import json
import logging
import subprocess
import tempfile
from datetime import date
from typing import Any, Dict, List, Optional


CRAWLER_SCRIPT = 'csp.py'
CRAWLER_ENV_VAR = 'SMBSITE_CRAWLER_PATH'
DEFAULT_TIMEOUT = 120


def default_search_paths(project_root: str) -> List[str]:
    """Directories checked for the crawl tool, in order."""
    paths = []
    if os.environ.get(CRAWLER_ENV_VAR):
        paths.append(os.environ[CRAWLER_ENV_VAR])
    paths.extend([
        os.path.join(project_root, '..', '..', 'muchstars', 'agents', 'Captain Scrapey Pants (CSP)'),
        os.path.join(os.path.expanduser('~'), 'dev', 'muchstars', 'agents', 'Captain Scrapey Pants (CSP)'),
    ])
    return paths


def _value(data: Any, *keys, default=''):
    for key in keys:
        if not isinstance(data, dict):
            return default
        data = data.get(key)
    return data or default


def map_extracted_data(extracted: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map the crawl tool's JSON output onto the wizard's answer structure.
    Missing values come back as empty strings.
    """
    year_founded = _value(extracted, 'business', 'year_founded', default=date.today().year)
    try:
        year_founded = int(year_founded)
    except (TypeError, ValueError):
        year_founded = date.today().year

    return {
        'business': {
            'name': _value(extracted, 'business', 'name'),
            'legal_name': _value(extracted, 'business', 'name'),
            'tagline': _value(extracted, 'business', 'tagline'),
            'description': _value(extracted, 'business', 'description'),
            'year_founded': year_founded,
        },
        'contact': {
            'email': _value(extracted, 'contact', 'email'),
            'phone': _value(extracted, 'contact', 'phone'),
            'phone_raw': _value(extracted, 'contact', 'phone_raw'),
            'address': {
                'street': _value(extracted, 'contact', 'address', 'street'),
                'city': _value(extracted, 'contact', 'address', 'city'),
                'state': _value(extracted, 'contact', 'address', 'state'),
                'zip': str(_value(extracted, 'contact', 'address', 'zip')),
                'country': _value(extracted, 'contact', 'address', 'country', default='USA'),
            },
        },
        'social': {
            platform: _value(extracted, 'social', platform)
            for platform in ('facebook', 'instagram', 'twitter', 'linkedin', 'youtube', 'yelp', 'google_business')
        },
        'branding': {
            'primary_color': _value(extracted, 'colors', 'primary', default='#2563eb'),
            'secondary_color': _value(extracted, 'colors', 'secondary', default='#1e40af'),
            'accent_color': _value(extracted, 'colors', 'accent', default='#f59e0b'),
        },
    }


class SiteCrawler:
    """Run the crawl tool against an existing website."""

    def __init__(self, project_root: str = None, search_paths: Optional[List[str]] = None,
                 timeout: int = DEFAULT_TIMEOUT, python_executable: str = None):
        self.project_root = project_root or os.getcwd()
        self.search_paths = search_paths if search_paths is not None else default_search_paths(self.project_root)
        self.timeout = timeout
        self.python_executable = python_executable or sys.executable
        self.logger = logging.getLogger('SMBSite.crawler')

    def find_tool(self) -> Optional[str]:
        """Return the directory containing the crawl tool, or None."""
        for path in self.search_paths:
            if os.path.isfile(os.path.join(path, CRAWLER_SCRIPT)):
                return path
        return None

    def extract(self, url: str) -> Optional[Dict[str, Any]]:
        """
        Crawl ``url`` and return the mapped business data.

        Returns:
            Partial wizard answers, or None when the tool is unavailable,
            times out, fails, or produces unreadable output.
        """
        tool_dir = self.find_tool()
        if not tool_dir:
            self.logger.info("Crawl tool not found, skipping website extraction")
            return None

        fd, output_file = tempfile.mkstemp(prefix='.extracted_', suffix='.json', dir=self.project_root)
        os.close(fd)
        command = [self.python_executable, CRAWLER_SCRIPT, 'extract', url, '--no-playwright', '-o', output_file]

        try:
            subprocess.run(command, cwd=tool_dir, capture_output=True, text=True,
                           timeout=self.timeout, check=True)
            with open(output_file, 'r', encoding='utf-8') as f:
                extracted = json.load(f)
        except subprocess.TimeoutExpired:
            self.logger.warning(f"Crawl of {url} timed out after {self.timeout}s")
            return None
        except subprocess.CalledProcessError as e:
            self.logger.warning(f"Crawl of {url} failed with exit code {e.returncode}: {(e.stderr or '').strip()}")
            return None
        except (IOError, OSError) as e:
            self.logger.warning(f"Could not run crawl tool: {e}")
            return None
        except json.JSONDecodeError as e:
            self.logger.warning(f"Crawl tool produced invalid JSON: {e}")
            return None
        finally:
            if os.path.exists(output_file):
                os.remove(output_file)

        if not isinstance(extracted, dict):
            return None
        return map_extracted_data(extracted)
