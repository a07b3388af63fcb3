"""Entry point for the vocab-analytics CLI client."""

import argparse
import logging
import sys

from cli.api_client import AnalyticsAPIClient
from cli.console import ConsoleUI

COMMANDS = ['chapters', 'overview', 'trend', 'status', 'dry-run', 'migrate', 'backups', 'restore']


def main():
    parser = argparse.ArgumentParser(description='Vocab analytics - chapter stats and legacy migration')
    parser.add_argument(
        '--server',
        default='http://localhost:8000',
        help='Server URL (default: http://localhost:8000)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument('command', choices=COMMANDS, help='What to show or run')
    parser.add_argument('target', nargs='?', help='Chapter name (trend) or backup key (restore)')
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.command in ('trend', 'restore') and not args.target:
        parser.error(f'{args.command} requires a target')

    client = AnalyticsAPIClient(base_url=args.server)
    ui = ConsoleUI(client)

    try:
        sys.exit(ui.run(args.command, args.target))
    except KeyboardInterrupt:
        print('\nGoodbye!')
        sys.exit(0)


if __name__ == '__main__':
    main()
