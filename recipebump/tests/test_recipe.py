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
Test suite for `recipebump.recipe`.
"""
import tempfile
import unittest
from pathlib import Path

from recipebump.exception import PatternMatchError
from recipebump.recipe import Recipe

RECIPE = """{ stdenv, fetchFromGitHub }:

let
  version = "1.2+git";
in stdenv.mkDerivation {
  pname = "example";
  inherit version;
  src = fetchFromGitHub {
    owner = "example";
    repo = "example";
    rev = "v${version}";
    sha256 = "0000000000000000000000000000000000000000000000000000";
  };
}
"""


class TestRecipe(unittest.TestCase):
    """
    Test suite for `Recipe`.
    """

    def setUp(self) -> None:
        """
        Write a recipe into a fresh temporary directory.
        """
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = Path(self.tmpdir.name) / "default.nix"
        self.path.write_text(RECIPE)
        self.recipe = Recipe(self.path)

    def tearDown(self) -> None:
        """
        Remove the temporary directory.
        """
        self.tmpdir.cleanup()

    def test_find_version(self):
        """
        Verify that versions with metacharacters are located literally.
        """
        declaration = self.recipe.find_version("version", "1.2+git")
        self.assertFalse(declaration.composite)
        self.assertEqual(
            declaration.replace(self.recipe.text,
                                "1.3"),
            RECIPE.replace('"1.2+git"',
                           '"1.3"'))
        with self.assertRaises(PatternMatchError):
            self.recipe.find_version("version", "1.2.git")
        with self.assertRaises(PatternMatchError):
            self.recipe.find_version("rev", "1.2+git")

    def test_find_composite_version(self):
        """
        Verify that a version may be found as a suffix of a name.
        """
        self.path.write_text('{\n  name = "foo-bar-2020-01-29";\n}\n')
        recipe = Recipe(self.path)
        declaration = recipe.find_version("version", "2020-01-29")
        self.assertTrue(declaration.composite)
        self.assertEqual(
            declaration.replace(recipe.text,
                                "2020-03-13"),
            '{\n  name = "foo-bar-2020-03-13";\n}\n')

    def test_replace_literal(self):
        """
        Verify that only quoted occurrences are replaced.
        """
        self.recipe.replace_literal("example", "other", "failed")
        text = self.path.read_text()
        self.assertIn('pname = "other";', text)
        self.assertIn('owner = "other";', text)
        self.assertEqual(text, self.recipe.text)
        with self.assertRaises(PatternMatchError) as cm:
            self.recipe.replace_literal("missing", "other", "failed")
        self.assertEqual(str(cm.exception), "failed")
        self.assertEqual(self.path.read_text(), text)

    def test_replace_unquoted_uri(self):
        """
        Verify that unquoted URI literals are replaced by strings.
        """
        old = "http://example.org/example-1.0.tar.gz"
        self.path.write_text(
            "fetchurl {\n"
            f"  url = {old};\n"
            f'  meta.description = "mirror of {old} and others";\n'
            "}\n")
        recipe = Recipe(self.path)
        recipe.replace_literal(
            old,
            "https://example.org/example-${version}.tar.gz",
            "failed")
        self.assertEqual(
            self.path.read_text(),
            "fetchurl {\n"
            '  url = "https://example.org/example-${version}.tar.gz";\n'
            f'  meta.description = "mirror of {old} and others";\n'
            "}\n")
        # only URIs may appear unquoted
        self.path.write_text("{\n  sha256 = abc;\n}\n")
        recipe = Recipe(self.path)
        with self.assertRaises(PatternMatchError):
            recipe.replace_literal("abc", "def", "failed")

    def test_transaction(self):
        """
        Verify that edits are kept on success and reverted on failure.
        """
        backup = self.recipe.backup_path
        self.assertEqual(backup.name, "default.nix.bak")
        with self.recipe.transaction():
            self.recipe.replace_literal("example", "other", "failed")
            self.assertTrue(backup.exists())
        self.assertFalse(backup.exists())
        edited = self.path.read_text()
        self.assertNotEqual(edited, RECIPE)
        with self.assertRaises(PatternMatchError):
            with self.recipe.transaction():
                self.recipe.replace_literal("other", "example", "failed")
                self.recipe.replace_literal("missing", "example", "failed")
        self.assertFalse(backup.exists())
        self.assertEqual(self.path.read_text(), edited)
        self.assertEqual(self.recipe.text, edited)


if __name__ == '__main__':
    unittest.main()
