"""
apimock Command Line Interface

Commands:
- serve: start the mock server
- validate: check a config document without starting a server
"""

import argparse
import logging
import sys

import yaml

from .common import ConfigFileLoader
from .mock import MalformedImport, MockRouteRegistry, create_mock_server
from .mock.fake_data import FAKE_DATA_BACKENDS


def cmd_serve(args):
    """
    Start the mock HTTP server.

    Args:
        args: Parsed command-line arguments
    """
    print("🎭 apimock Mock Server")

    if args.configs:
        print(f"📂 Loading configs from {args.configs}")

    if args.faker_backend:
        seed_info = f", seed: {args.faker_seed}" if args.faker_seed is not None else ""
        print(f"🎲 Fake data backend: {args.faker_backend}{seed_info}")

    try:
        server = create_mock_server(
            host=args.host,
            port=args.port,
            settings_file=args.settings,
            seed_file=args.configs,
            fake_data_backend=args.faker_backend,
            faker_locale=args.faker_locale,
            faker_seed=args.faker_seed,
            max_delay_ms=args.max_delay,
            log_level=args.log_level
        )
    except (FileNotFoundError, ValueError, yaml.YAMLError, MalformedImport) as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

    server.start()


def cmd_validate(args):
    """
    Validate a config document the same way the import endpoint does.

    Args:
        args: Parsed command-line arguments
    """
    try:
        document = ConfigFileLoader(args.config_file).load()
        configs = MockRouteRegistry(max_delay_ms=args.max_delay).parse_import(document)
    except (FileNotFoundError, ValueError, yaml.YAMLError, MalformedImport) as e:
        print(f"❌ Invalid: {e}")
        sys.exit(1)

    total_routes = sum(len(c.routes) for c in configs)
    print(f"✅ {len(configs)} configs, {total_routes} routes")
    for config in configs:
        state = "enabled" if config.enabled else "disabled"
        print(f"   {config.name} ({config.base_path or '/'}, {state})")
        for route in config.routes:
            print(f"     {route.method:7} {route.path} -> {route.response.status}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='apimock',
        description='apimock - mock HTTP server with templated responses',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start an empty mock server
  %(prog)s serve --port 8080

  # Start with configs exported from another instance
  %(prog)s serve --configs mocks.yaml --faker-seed 42

  # Check a config document
  %(prog)s validate mocks.json
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # --- SERVE command ---
    serve_parser = subparsers.add_parser('serve', help='Start mock HTTP server')
    serve_parser.add_argument('--host', help='Host to bind (default: 127.0.0.1)')
    serve_parser.add_argument('-p', '--port', type=int, help='Port to bind (default: 8080)')
    serve_parser.add_argument('--settings', help='YAML settings file')
    serve_parser.add_argument('-c', '--configs', help='JSON/YAML config document to import at startup')
    serve_parser.add_argument('--faker-backend', choices=FAKE_DATA_BACKENDS,
                              help='Fake data backend (default: faker)')
    serve_parser.add_argument('--faker-locale', help='Faker locale (default: en_US)')
    serve_parser.add_argument('--faker-seed', type=int, help='Seed for reproducible fake data')
    serve_parser.add_argument('--max-delay', type=int, help='Largest accepted route delay in ms (default: 30000)')
    serve_parser.add_argument('--log-level', choices=['debug', 'info', 'warning', 'error'],
                              help='Log level (default: info)')

    # --- VALIDATE command ---
    validate_parser = subparsers.add_parser('validate', help='Validate a config document')
    validate_parser.add_argument('config_file', help='JSON/YAML config document')
    validate_parser.add_argument('--max-delay', type=int, default=30000,
                                 help='Largest accepted route delay in ms (default: 30000)')

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, (getattr(args, 'log_level', None) or 'info').upper()),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    if args.command == 'serve':
        cmd_serve(args)
    elif args.command == 'validate':
        cmd_validate(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == '__main__':
    main()
