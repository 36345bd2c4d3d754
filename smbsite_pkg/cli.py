#!/usr/bin/env python3
"""
Command-line interface for SMBSite - small-business site generator.
"""

import os
import sys
import json
import time
import argparse
import yaml
from typing import List, Optional

from . import __version__
from .core import SiteBuilder
from .reviews import ReviewsAccessor
from .settings import SiteSettings, ConfigError
from .wizard import SetupWizard

SAMPLE_REVIEWS = {
    "reviews": [
        {
            "id": "r1",
            "author": "Jane D.",
            "rating": 5,
            "date": "2024-03-12",
            "text": "Fast, friendly and professional. Highly recommended!",
            "hasPhoto": False
        }
    ]
}


def create_starter_structure(project_dir: str) -> None:
    """Create the directories and sample data a new site needs."""
    directories = [
        'content/blog',
        'data',
        'assets/css',
        'assets/js',
        'public/images',
    ]

    for directory in directories:
        dir_path = os.path.join(project_dir, directory)
        if os.path.exists(dir_path):
            print(f"Directory already exists: {directory}")
        else:
            os.makedirs(dir_path, exist_ok=True)
            print(f"Created directory: {directory}")

    reviews_path = os.path.join(project_dir, 'data', 'reviews.json')
    if os.path.exists(reviews_path):
        print("Reviews file already exists: data/reviews.json")
    else:
        with open(reviews_path, 'w', encoding='utf-8') as f:
            json.dump(SAMPLE_REVIEWS, f, indent=2)
        print("Created sample reviews: data/reviews.json")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='SMBSite - Small-business site generator')
    parser.add_argument('--config-dir', type=str,
                        help='Directory containing config.yaml (default: current directory)')
    parser.add_argument('--output', type=str, default='output',
                        help='Output directory for generated site')
    parser.add_argument('--content', type=str, default='content',
                        help='Content directory containing blog posts')
    parser.add_argument('--templates', type=str, default='templates',
                        help='Templates directory (defaults to the built-in templates)')
    parser.add_argument('--assets', type=str, default='assets',
                        help='Assets directory to copy to output')
    parser.add_argument('--public', type=str, default='public',
                        help='Directory of files copied verbatim to the output root')
    parser.add_argument('--reviews', type=str,
                        help='Path to the reviews dataset (default: data/reviews.json)')
    parser.add_argument('--minify', action='store_true',
                        help='Minify CSS and JS assets')
    parser.add_argument('--init', action='store_true',
                        help='Create a sample config.yaml and starter project structure')
    parser.add_argument('--setup', action='store_true',
                        help='Run the interactive setup wizard')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    project_dir = args.config_dir or os.getcwd()

    if args.init:
        settings_loader = SiteSettings(project_dir)
        try:
            config_path = settings_loader.create_sample_config()
            print(f"Created sample configuration file: {config_path}")
        except FileExistsError as e:
            print(str(e))
        print("\nCreating starter project structure...")
        create_starter_structure(project_dir)
        print("\n✅ Starter structure created successfully!")
        print("Edit config.yaml (or run 'smbsite --setup'), then run 'smbsite' to build your site.")
        return

    if args.setup:
        try:
            SetupWizard(project_root=project_dir).run()
        except (KeyboardInterrupt, EOFError):
            print("\nSetup cancelled.")
            sys.exit(1)
        except (ConfigError, yaml.YAMLError, IOError, OSError) as e:
            print(f"Setup failed: {e}", file=sys.stderr)
            sys.exit(1)
        return

    overall_start_time = time.time()

    try:
        # Resolve once; every consumer receives this same object
        config = SiteSettings(project_dir).load()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    reviews_path = args.reviews or os.path.join(project_dir, 'data', 'reviews.json')

    try:
        generator = SiteBuilder(
            config,
            templates_dir=args.templates,
            content_dir=args.content,
            output_dir=os.path.expanduser(args.output),
            assets_dir=args.assets,
            public_dir=args.public,
            reviews=ReviewsAccessor(config, reviews_path),
            minify=args.minify,
        )
        generator.build()

        total_time = time.time() - overall_start_time
        generator.logger.info(f"Site build completed in {total_time:.6f} seconds.")
        generator.logger.info(f"Total pages generated: {generator.pages_generated}")
        generator.logger.info(f"Total posts generated: {generator.posts_generated}")
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
