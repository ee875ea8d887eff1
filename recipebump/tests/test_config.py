#
# Copyright (c) 2023 Radiance Technologies, Inc.
#
# This file is part of recipebump.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this program. If not, see
# <http://www.gnu.org/licenses/>.
#
"""
Test suite for `recipebump.config`.
"""
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from recipebump.config import CONFIG_ENV_VAR, UpdaterConfig
from recipebump.exception import ConfigurationError
from recipebump.nix import NixEvaluator, NixFetcher


class TestUpdaterConfig(unittest.TestCase):
    """
    Test suite for `UpdaterConfig`.
    """

    def setUp(self) -> None:
        """
        Create a temporary directory for configuration files.
        """
        self.tmpdir = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmpdir.name)
        self.path = self.dir / "recipebump.yml"

    def tearDown(self) -> None:
        """
        Remove the temporary directory.
        """
        self.tmpdir.cleanup()

    def test_defaults(self):
        """
        Verify that no file means default settings.
        """
        with mock.patch.dict(os.environ, {}, clear=True):
            config = UpdaterConfig.load()
        self.assertEqual(config, UpdaterConfig())
        self.assertEqual(UpdaterConfig.from_dict(None), UpdaterConfig())

    def test_load(self):
        """
        Verify that settings are read from a YAML file.
        """
        self.path.write_text(
            "nix_build: /run/current-system/sw/bin/nix-build\n"
            "expression: ./nixpkgs\n"
            "fetch_log_dir: /tmp/logs\n"
            "lock: false\n"
            "extra_args: [--option, sandbox, 'false']\n")
        config = UpdaterConfig.load(self.path)
        self.assertEqual(
            config.nix_build,
            "/run/current-system/sw/bin/nix-build")
        self.assertEqual(config.nix_instantiate, "nix-instantiate")
        self.assertFalse(config.lock)
        self.assertEqual(config.extra_args, ["--option", "sandbox", "false"])
        with mock.patch.dict(os.environ, {CONFIG_ENV_VAR: str(self.path)}):
            self.assertEqual(UpdaterConfig.load(), config)

    def test_invalid(self):
        """
        Verify that malformed configurations are rejected.
        """
        with self.assertRaises(ConfigurationError):
            UpdaterConfig.load(self.dir / "missing.yml")
        for text in ["nix_bulid: nix-build\n",
                     "- nix-build\n",
                     "extra_args: --option\n",
                     "nix: [unterminated\n"]:
            with self.subTest(text=text):
                self.path.write_text(text)
                with self.assertRaises(ConfigurationError):
                    UpdaterConfig.load(self.path)

    def test_make_updater(self):
        """
        Verify that collaborators receive the configured settings.
        """
        config = UpdaterConfig(
            nix="/bin/nix",
            expression="<nixpkgs>",
            fetch_log_dir=str(self.dir),
            lock=False,
            extra_args=["--show-trace"])
        updater = config.make_updater()
        self.assertFalse(updater.lock)
        self.assertIsInstance(updater.evaluator, NixEvaluator)
        self.assertEqual(updater.evaluator.nix, "/bin/nix")
        self.assertEqual(updater.evaluator.expression, "<nixpkgs>")
        self.assertEqual(updater.evaluator.extra_args, ["--show-trace"])
        self.assertIsInstance(updater.fetcher, NixFetcher)
        self.assertEqual(
            updater.fetcher.log_path("hello"),
            self.dir / "hello.fetchlog")


if __name__ == '__main__':
    unittest.main()
