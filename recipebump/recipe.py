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
A minimal textual model of recipe files.

Recipes are treated as text containing ``key = "value"`` declarations.
Only string literals are ever rewritten; everything else in the file is
preserved byte for byte.
"""
import logging
import os
import re
import shutil
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Generator

from recipebump.exception import PatternMatchError
from recipebump.util.io import atomic_write, read_text
from recipebump.util.path import PathLike, append_suffix
from recipebump.util.re import count_matches

logger = logging.getLogger(__name__)

_uri_regex = re.compile(
    r"[a-zA-Z][a-zA-Z0-9+\-.]*:[a-zA-Z0-9%/?:@&=+$,\-_.!~*']+")
"""
The form of Nix's unquoted URI literals, e.g., ``url = http://a/b;``.
"""


@dataclass(frozen=True)
class VersionDeclaration:
    """
    The unique location in a recipe where a version is declared.
    """

    pattern: re.Pattern
    """
    A pattern whose ``version`` group matches the declared version.
    """
    composite: bool
    """
    Whether the version is embedded as a ``name = "<pname>-<version>"``
    suffix rather than declared directly.
    """

    def replace(self, text: str, new_version: str) -> str:
        """
        Substitute a new version into the declaration.
        """
        return self.pattern.sub(
            lambda m: m['prefix'] + new_version + m['suffix'],
            text,
            count=1)


class Recipe:
    """
    A recipe file that can be rewritten in place.

    Every rewrite is immediately persisted.
    Use `transaction` to make a sequence of rewrites all-or-nothing.
    """

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)
        self.text = read_text(self.path)

    @property
    def backup_path(self) -> Path:
        """
        The location of the snapshot taken by `transaction`.
        """
        return append_suffix(self.path, ".bak")

    def count(self, literal: str) -> int:
        """
        Count the occurrences of `literal` in the recipe text.
        """
        return self.text.count(literal)

    def find_version(self, key: str, version: str) -> VersionDeclaration:
        """
        Locate the unique declaration of the given version.

        A direct ``<key> = "<version>"`` declaration is preferred.
        Otherwise, a ``name = "<pname>-<version>"`` declaration is
        sought.

        Raises
        ------
        PatternMatchError
            If neither form appears exactly once.
        """
        escaped = re.escape(version)
        candidates = [
            VersionDeclaration(
                re.compile(
                    rf'^(?P<prefix>\s*(?:let\b)?\s*{re.escape(key)}\s*=\s*")'
                    rf'(?P<version>{escaped})(?P<suffix>")',
                    re.MULTILINE),
                composite=False),
            VersionDeclaration(
                re.compile(
                    r'^(?P<prefix>\s*(?:let\b)?\s*name\s*=\s*"[^"]+-)'
                    rf'(?P<version>{escaped})(?P<suffix>")',
                    re.MULTILINE),
                composite=True),
        ]
        for candidate in candidates:
            if count_matches(candidate.pattern, self.text) == 1:
                return candidate
        raise PatternMatchError(
            f"Couldn't figure out where to patch in new version "
            f"in '{self.path}'")

    def rewrite(
            self,
            edit: Callable[[str],
                           str],
            failure: str) -> None:
        """
        Apply an edit to the recipe text and persist the result.

        Parameters
        ----------
        edit : Callable[[str], str]
            A function mapping the current text to the new text.
        failure : str
            The message of the error raised if `edit` changes nothing.

        Raises
        ------
        PatternMatchError
            If the edit did not change the text.
        """
        new_text = edit(self.text)
        if new_text == self.text:
            raise PatternMatchError(failure)
        atomic_write(self.path, new_text)
        self.text = new_text

    def replace_version(
            self,
            declaration: VersionDeclaration,
            old_version: str,
            new_version: str) -> None:
        """
        Replace the version at the given declaration.
        """
        self.rewrite(
            lambda text: declaration.replace(text,
                                             new_version),
            f"Failed to replace version '{old_version}' to '{new_version}' "
            f"in '{self.path}'")
        logger.info(f"Replaced version '{old_version}' with '{new_version}'")

    def replace_literal(self, old: str, new: str, failure: str) -> None:
        """
        Replace every quoted occurrence of the string `old` with `new`.

        If `old` is a URI, then its occurrences as an unquoted URI
        literal (``url = <old>;``) are replaced as well.
        The replacement is always written as a quoted string.
        """
        regex = re.escape(f'"{old}"')
        if _uri_regex.fullmatch(old):
            regex += rf"|(?P<lead>=[ \t]*){re.escape(old)}(?=[ \t]*;)"
        pattern = re.compile(regex)
        self.rewrite(
            lambda text: pattern.sub(
                lambda m: (m.groupdict().get('lead') or '') + f'"{new}"',
                text),
            failure)
        logger.info(f"Replaced '{old}' with '{new}'")

    def restore(self) -> None:
        """
        Restore the recipe from its backup snapshot.
        """
        os.replace(self.backup_path, self.path)
        self.text = read_text(self.path)
        logger.warning(f"Restored {self.path} from backup")

    @contextmanager
    def transaction(self) -> Generator['Recipe', None, None]:
        """
        Get a context in which edits are rolled back on failure.

        A snapshot of the recipe is saved next to it with a ``.bak``
        suffix on entry.
        If the context exits with an exception, then the recipe is
        restored from the snapshot.
        Otherwise, the snapshot is discarded.
        """
        shutil.copy2(self.path, self.backup_path)
        logger.debug(f"Saved backup {self.backup_path}")
        try:
            yield self
        except BaseException:
            self.restore()
            raise
        else:
            self.backup_path.unlink()
