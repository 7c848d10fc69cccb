"""
Command line interface for the s3tonowhere download benchmark.
"""

import os
import sys
import json
import logging
import argparse

import uvloop

# Add the current directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from configuration import (
    DEFAULT_CONCURRENCY,
    DEFAULT_CONFIG_FILE,
    DEFAULT_MAX_OBJECTS,
    DEFAULT_MAX_SECONDS,
)
from common.exceptions import BenchmarkError
from common.settings import load_config

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging on stderr so stdout only carries the report."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
        force=True,
    )


class S3ToNowhereCLI:
    """CLI interface for the bucket download benchmark."""

    def __init__(self):
        self.parser = self._create_parser()

    def _add_common_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument('--bucket', type=str, default="",
                            help='Name of the bucket to download from')
        parser.add_argument('--section', type=str, default="",
                            help='Name of the section from the config file to use')
        parser.add_argument('--config', type=str, default=DEFAULT_CONFIG_FILE,
                            help=f'The name of the configuration file (default: {DEFAULT_CONFIG_FILE})')
        parser.add_argument('--objects', type=int, default=DEFAULT_MAX_OBJECTS,
                            help='Limits the number of objects downloaded, a negative value means no limit')
        parser.add_argument('--seconds', type=int, default=DEFAULT_MAX_SECONDS,
                            help='Stop starting new downloads after this many seconds; downloads in '
                                 'progress still complete. A negative value means no limit')
        parser.add_argument('--concurrency', type=int, default=DEFAULT_CONCURRENCY,
                            help=f'Maximum number of downloads in flight (default: {DEFAULT_CONCURRENCY})')
        parser.add_argument('--samples-dir', type=str, default=None,
                            help='Save every sample to a Parquet file in this directory')
        parser.add_argument('--verbose', '-v', action='store_true',
                            help='Enable debug logging')

    def _create_parser(self):
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            prog='s3tonowhere',
            description='Download every object of a bucket into nowhere and report throughput',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Download the whole bucket using the [prod] section of rclone.conf
  s3tonowhere run --bucket media --section prod

  # Stop admitting new downloads after 1000 objects or 5 minutes
  s3tonowhere run --bucket media --section prod --objects 1000 --seconds 300

  # Show the resolved configuration
  s3tonowhere show-config --bucket media --section prod
            """
        )

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        run_parser = subparsers.add_parser('run', help='Run the download benchmark')
        self._add_common_arguments(run_parser)

        show_parser = subparsers.add_parser('show-config', help='Show the resolved configuration')
        self._add_common_arguments(show_parser)

        return parser

    def _load_config(self, args):
        return load_config(
            bucket_name=args.bucket,
            section_name=args.section,
            config_file=args.config,
            max_objects=args.objects,
            max_seconds=args.seconds,
            concurrency=args.concurrency,
            verbose=args.verbose,
            samples_dir=args.samples_dir,
        )

    async def run_benchmark(self, config):
        """Run the download benchmark."""
        from common.runner import BenchmarkRunner

        logger.info("=== Download Benchmark ===")
        runner = BenchmarkRunner(config)
        await runner.run()
        logger.info("Benchmark completed successfully")
        return 0

    def run_show_config(self, config):
        """Print the resolved configuration with secrets masked."""
        print(json.dumps(config.describe(), indent=2))
        return 0

    def run(self, args=None):
        """Run the CLI with the given arguments."""
        if args is None:
            args = sys.argv[1:]

        parsed_args = self.parser.parse_args(args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        setup_logging(parsed_args.verbose)

        try:
            config = self._load_config(parsed_args)
            if parsed_args.command == 'run':
                return uvloop.run(self.run_benchmark(config))
            elif parsed_args.command == 'show-config':
                return self.run_show_config(config)
            else:
                logger.error(f"Unknown command: {parsed_args.command}")
                return 1

        except KeyboardInterrupt:
            logger.info("Operation interrupted by user")
            return 130
        except BenchmarkError as e:
            logger.error(f"{type(e).__name__}: {e}")
            return 1


def main():
    """Main entry point."""
    cli = S3ToNowhereCLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
