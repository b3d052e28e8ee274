"""
Command-line interface for the Dairin Python client
Computes request signatures and sends signed connectivity checks
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from typing import Dict, List, Optional

from . import __version__
from .config import load_config_from_env, load_config_from_file
from .exceptions import DairinClientError
from .http_client import DairinClient
from .signing import (
    HMACSigner,
    SigningInput,
    SigningError,
    generate_nonce,
    generate_timestamp,
)

SECRET_KEY_ENV = 'DAIRIN_SECRET_KEY'


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='dairin-cli',
        description='Dairin client command-line interface for request signing'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'Dairin Python Client {__version__}'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    setup_sign_parser(subparsers)
    setup_nonce_parser(subparsers)
    setup_ping_parser(subparsers)

    return parser


def setup_sign_parser(subparsers):
    """Setup signature computation subcommand."""
    sign_parser = subparsers.add_parser('sign', help='Compute the signature for a request')
    sign_parser.add_argument('--method', default='POST', help='HTTP method (default: POST)')
    sign_parser.add_argument('--path', required=True, help='Request path, e.g. /api/v1/ping')
    sign_parser.add_argument(
        '--query',
        action='append',
        metavar='KEY=VALUE',
        help='Query parameter (repeatable)'
    )
    body_group = sign_parser.add_mutually_exclusive_group()
    body_group.add_argument('--body', help='Request body as a string')
    body_group.add_argument('--body-file', help='Read the request body from a file')
    sign_parser.add_argument('--timestamp', help='UNIX seconds (default: now)')
    sign_parser.add_argument('--nonce', help='Nonce (default: 16 random hex characters)')
    sign_parser.add_argument(
        '--secret-key',
        help=f'Secret key (default: ${SECRET_KEY_ENV})'
    )
    sign_parser.add_argument(
        '--show-canonical',
        action='store_true',
        help='Include the canonical string in the output'
    )


def setup_nonce_parser(subparsers):
    """Setup nonce generation subcommand."""
    nonce_parser = subparsers.add_parser('nonce', help='Generate a random nonce')
    nonce_parser.add_argument(
        '--bytes',
        type=int,
        choices=[8, 16],
        default=8,
        help='Random bytes before hex encoding (default: 8)'
    )


def setup_ping_parser(subparsers):
    """Setup ping subcommand."""
    ping_parser = subparsers.add_parser('ping', help='Send a signed connectivity check')
    ping_parser.add_argument('--config', help='JSON configuration file (default: DAIRIN_* env vars)')
    ping_parser.add_argument('--base-url', help='Override the API base URL')


def parse_query_args(pairs: List[str]) -> Dict[str, str]:
    """
    Parse KEY=VALUE arguments into a query parameter mapping.

    Raises:
        ValueError: If a pair has no '='
    """
    params = {}
    for pair in pairs:
        if '=' not in pair:
            raise ValueError(f"Query parameter must be KEY=VALUE: {pair}")
        key, value = pair.split('=', 1)
        params[key] = value
    return params


def handle_sign_command(args) -> int:
    """Handle sign command."""
    secret_key = args.secret_key or os.environ.get(SECRET_KEY_ENV)
    if not secret_key:
        print(f"Error: --secret-key or ${SECRET_KEY_ENV} is required", file=sys.stderr)
        return 1

    try:
        query_params = parse_query_args(args.query or [])
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    body = args.body
    if args.body_file:
        with open(args.body_file, 'rb') as f:
            body = f.read()

    signing_input = SigningInput(
        http_method=args.method,
        path=args.path,
        query_params=query_params,
        body=body,
        timestamp=args.timestamp or generate_timestamp(),
        nonce=args.nonce or generate_nonce(),
    )
    result = HMACSigner(secret_key).sign_with_details(signing_input)

    output = {
        'signature': result.signature,
        'headers': result.headers,
    }
    if args.show_canonical:
        output['canonical_string'] = result.canonical_string

    print(json.dumps(output, indent=2))
    return 0


def handle_nonce_command(args) -> int:
    """Handle nonce command."""
    print(generate_nonce(args.bytes))
    return 0


def handle_ping_command(args) -> int:
    """Handle ping command."""
    if args.config:
        config = load_config_from_file(args.config)
    else:
        config = load_config_from_env()

    if args.base_url:
        config.client = replace(config.client, base_url=args.base_url)

    with DairinClient.from_config(config) as client:
        response = client.ping()

    print(f"HTTP {response.status_code}")
    if response.text:
        print(response.text)
    return 0 if response.ok else 1


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s %(name)s %(levelname)s %(message)s'
        )

    try:
        if args.command == 'sign':
            return handle_sign_command(args)
        elif args.command == 'nonce':
            return handle_nonce_command(args)
        elif args.command == 'ping':
            return handle_ping_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except (DairinClientError, SigningError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
