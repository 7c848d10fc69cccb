"""
Tests for the command line interface.
"""

import io
import json
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest.mock import patch

# Add the parent directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cli import S3ToNowhereCLI
from common.exceptions import ListingError


def _raising(error):
    def run(coro):
        coro.close()
        raise error
    return run


class TestCLI(unittest.TestCase):
    """Test argument parsing and exit codes."""

    def setUp(self):
        self.cli = S3ToNowhereCLI()
        self.tmpdir = tempfile.TemporaryDirectory()
        self.config_file = os.path.join(self.tmpdir.name, "rclone.conf")
        with open(self.config_file, "w", encoding="utf-8") as f:
            f.write(
                "[prod]\n"
                "endpoint = https://objects.example.org\n"
                "access_key_id = AKIA\n"
                "secret_access_key = secret\n"
            )

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_parse_run_arguments(self):
        args = self.cli.parser.parse_args([
            "run", "--bucket", "media", "--section", "prod",
            "--objects", "100", "--seconds", "30", "--concurrency", "8",
        ])

        self.assertEqual(args.command, "run")
        self.assertEqual(args.bucket, "media")
        self.assertEqual(args.section, "prod")
        self.assertEqual(args.objects, 100)
        self.assertEqual(args.seconds, 30)
        self.assertEqual(args.concurrency, 8)
        self.assertIsNone(args.samples_dir)

    def test_defaults_are_unlimited(self):
        args = self.cli.parser.parse_args(["run", "--bucket", "media", "--section", "prod"])

        self.assertLess(args.objects, 0)
        self.assertLess(args.seconds, 0)

    def test_no_command(self):
        with redirect_stdout(io.StringIO()):
            self.assertEqual(self.cli.run([]), 1)

    def test_show_config_masks_secret(self):
        out = io.StringIO()
        with redirect_stdout(out):
            code = self.cli.run([
                "show-config", "--bucket", "media", "--section", "prod", "--config", self.config_file,
            ])

        self.assertEqual(code, 0)
        data = json.loads(out.getvalue())
        self.assertEqual(data["host"], "objects.example.org")
        self.assertEqual(data["secret_key"], "********")

    def test_configuration_error_exit_code(self):
        code = self.cli.run(["run", "--bucket", "media", "--section", "missing", "--config", self.config_file])

        self.assertEqual(code, 1)

    def test_zero_seconds_exit_code(self):
        code = self.cli.run([
            "run", "--bucket", "media", "--section", "prod", "--config", self.config_file, "--seconds", "0",
        ])

        self.assertEqual(code, 1)

    def test_run_failure_exit_code(self):
        with patch("cli.uvloop.run", side_effect=_raising(ListingError("denied"))):
            code = self.cli.run(["run", "--bucket", "media", "--section", "prod", "--config", self.config_file])

        self.assertEqual(code, 1)

    def test_interrupt_exit_code(self):
        with patch("cli.uvloop.run", side_effect=_raising(KeyboardInterrupt())):
            code = self.cli.run(["run", "--bucket", "media", "--section", "prod", "--config", self.config_file])

        self.assertEqual(code, 130)


if __name__ == '__main__':
    unittest.main()
