"""
Main entry point for quadmath.

Runs the HTTP server, or with --snapshot prints the analytics for a saved
quad and exits.
"""

import argparse
import logging
import json
import sys

from quadmath.system import SystemManager
from quadmath.components.config import ConfigManager, load_config_file
from quadmath.quad.quad import Quad


def setup_logging(level: str = 'INFO') -> None:
    """
    Set up logging.

    Args:
        level: Logging level
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )


def parse_args(argv=None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description='Quadrant quiz analytics')

    parser.add_argument(
        '--config',
        help='Path to configuration file'
    )

    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level'
    )

    parser.add_argument(
        '--data-dir',
        help='Directory for quad snapshots'
    )

    parser.add_argument(
        '--port',
        type=int,
        help='Server port'
    )

    parser.add_argument(
        '--host',
        help='Server host'
    )

    parser.add_argument(
        '--database-url',
        help='SQLAlchemy database URL for the response store'
    )

    parser.add_argument(
        '--snapshot',
        help='Print analytics for a quad snapshot (JSON) and exit'
    )

    return parser.parse_args(argv)


def analyze_snapshot(filepath: str) -> dict:
    """
    Compute superlatives, a correlation finding and the default layout for a
    saved quad.

    Args:
        filepath: Path to a JSON snapshot as written by Quad.to_dict

    Returns:
        JSON-serializable analysis
    """
    with open(filepath, 'r') as f:
        quad = Quad.from_dict(json.load(f))

    finding = quad.find_correlation()
    plot = quad.layout()

    return {
        'summary': quad.get_summary(),
        'superlatives': {
            kind: award.model_dump() if award is not None else None
            for kind, award in quad.superlatives().items()
        },
        'correlation': finding.model_dump() if finding is not None else None,
        'layout': plot.to_dict() if plot is not None else None,
    }


def build_overrides(args: argparse.Namespace) -> dict:
    """
    Turn command line arguments into configuration overrides.
    """
    overrides = {}

    if args.config:
        overrides.update(load_config_file(args.config))

    if args.data_dir:
        overrides.setdefault('quads', {})['data-dir'] = args.data_dir

    if args.port:
        overrides.setdefault('server', {})['port'] = args.port

    if args.host:
        overrides.setdefault('server', {})['host'] = args.host

    if args.database_url:
        overrides.setdefault('database', {})['url'] = args.database_url

    return overrides


def main(argv=None) -> None:
    """
    Main entry point.
    """
    args = parse_args(argv)

    setup_logging(args.log_level)

    if args.snapshot:
        json.dump(analyze_snapshot(args.snapshot), sys.stdout, indent=2)
        sys.stdout.write('\n')
        return

    config = ConfigManager.get_config(build_overrides(args))

    system = SystemManager.start(config)

    try:
        system.wait_for_shutdown()
    except KeyboardInterrupt:
        pass
    finally:
        SystemManager.stop()


if __name__ == '__main__':
    main()
