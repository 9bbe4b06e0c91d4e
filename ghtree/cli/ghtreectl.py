#!/usr/bin/env python3
"""
ghtreectl - fetch a subtree of a GitHub repository without cloning it.

Usage:
    ghtree octocat hello-world --rev main --path /docs --dest ./docs
    ghtree octocat hello-world --path src --dry-run
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ghtree import __version__
from ghtree.config import get_config
from ghtree.errors import GHTreeError
from ghtree.objects import ObjectKind
from ghtree.runner import FetchRequest, FetchResult, run
from ghtree.snapshot import render


def print_progress(kind: ObjectKind, path) -> None:
    """Print one resolved node as '<kind> <path>'."""
    print(f"{kind.label:<9} {path}", flush=True)


def print_error(error: BaseException) -> None:
    """Print an error and its chain of causes to stderr."""
    print(f"Error: {error}", file=sys.stderr)
    cause = error.__cause__
    while cause is not None:
        print(f"Caused by: {cause}", file=sys.stderr)
        cause = cause.__cause__


def print_summary(result: FetchResult, dry_run: bool) -> None:
    if dry_run and result.tree is not None:
        print(render(result.tree))
        print(f"Dry run: {result.files} files in {result.directories} directories (nothing written)")
        return
    print(f"Fetched {result.files} files in {result.directories} directories to {result.destination}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='ghtree',
        description='Materialize a subtree of a GitHub repository via the GraphQL API',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument('owner', help='Repository owner')
    parser.add_argument('name', help='Repository name')

    parser.add_argument(
        '--rev', '-r',
        default='HEAD',
        help='Commit-ish to read from (default: HEAD)'
    )
    parser.add_argument(
        '--path', '-p',
        default='',
        help='Path inside the repository; leading / is allowed (default: repository root)'
    )
    parser.add_argument(
        '--dest', '-d',
        type=Path,
        default=Path('.'),
        help='Local destination (default: current directory)'
    )
    parser.add_argument(
        '--endpoint',
        default=None,
        help='GraphQL endpoint (default: $GHTREE_ENDPOINT or https://api.github.com/graphql)'
    )
    parser.add_argument(
        '--token',
        default=None,
        help='GitHub token (default: $GITHUB_TOKEN)'
    )
    parser.add_argument(
        '--max-concurrency',
        type=int,
        default=None,
        help='Maximum lookups in flight, 0 for unbounded (default: $GHTREE_MAX_CONCURRENCY or 8)'
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        help='Per-request timeout in seconds (default: $GHTREE_TIMEOUT or 30)'
    )
    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help='YAML config file (default: $GHTREE_CONFIG or ~/.ghtree/config.yaml)'
    )
    parser.add_argument('--dry-run', action='store_true', help='Fetch and list the tree without writing')
    parser.add_argument('--quiet', '-q', action='store_true', help='Do not print per-node progress')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    try:
        config = get_config(args.config).apply_overrides(
            endpoint=args.endpoint,
            token=args.token,
            max_concurrency=args.max_concurrency,
            timeout=args.timeout
        )
    except (ValueError, FileNotFoundError) as e:
        print_error(e)
        return 1

    request = FetchRequest(
        owner=args.owner,
        repo=args.name,
        commit_ish=args.rev,
        path=args.path,
        destination=args.dest,
        dry_run=args.dry_run
    )

    reporter = None if args.quiet or args.dry_run else print_progress

    try:
        result = run(request, config, reporter=reporter)
    except (GHTreeError, OSError) as e:
        print_error(e)
        return 1

    print_summary(result, args.dry_run)
    return 0


if __name__ == '__main__':
    sys.exit(main())
