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
Tests for the util.io module.
"""
import os
import stat
import tempfile
import unittest
from pathlib import Path

from recipebump.util.io import atomic_write, read_text


class TestAtomicWrite(unittest.TestCase):
    """
    Tests for the atomic_write function.
    """

    def test_atomic_write_str(self):
        """
        Verify strings get written verbatim.
        """
        with tempfile.TemporaryDirectory() as tmpdir:
            test_string = "abc\r\ndef\n"
            test_filename = Path(tmpdir) / "logs" / "test.txt"
            atomic_write(test_filename, test_string)
            with open(test_filename, "rt", newline='') as f:
                self.assertEqual(test_string, f.read())
            self.assertEqual(os.listdir(test_filename.parent), ["test.txt"])

    def test_atomic_write_preserves_mode(self):
        """
        Verify that overwriting a file keeps its permissions.
        """
        with tempfile.TemporaryDirectory() as tmpdir:
            test_filename = Path(tmpdir) / "update.sh"
            test_filename.write_text("old")
            os.chmod(test_filename, 0o755)
            atomic_write(test_filename, "new")
            self.assertEqual(test_filename.read_text(), "new")
            self.assertEqual(
                stat.S_IMODE(test_filename.stat().st_mode),
                0o755)

    def test_read_text(self):  # noqa: D102
        with tempfile.TemporaryDirectory() as tmpdir:
            test_filename = Path(tmpdir) / "default.nix"
            atomic_write(test_filename, 'version = "1.0";\n')
            self.assertEqual(read_text(test_filename), 'version = "1.0";\n')

    def test_atomic_write_rejects_non_str(self):  # noqa: D102
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(TypeError):
                atomic_write(Path(tmpdir) / "test.txt", b"abc")


if __name__ == "__main__":
    unittest.main()
