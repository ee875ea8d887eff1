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
Fetching recipe sources to learn their actual hashes.
"""
import abc
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from recipebump.util.io import atomic_write
from recipebump.util.re import regex_from_options

from .command import NixCommand

logger = logging.getLogger(__name__)

_FIXED_OUTPUT_MISMATCH = "hash mismatch in fixed-output derivation"
_got_regex = re.compile(r"^\s*got:\s+(?P<hash>\S+)", re.MULTILINE)
_expected_regex = re.compile(
    r"^\s*{}:\s+(?P<hash>\S+)".format(
        regex_from_options(["specified",
                            "wanted"],
                           must_start=False,
                           must_end=False,
                           compile=False)),
    re.MULTILINE)
_legacy_regexes: List[re.Pattern] = [
    # output path '/nix/store/...' has sha256 hash 'X' when 'Y' was expected
    re.compile(
        r"has (?:\w+) hash '(?P<actual>[^']+)' "
        r"when '(?P<expected>[^']+)' was expected"),
    # ... with sha256 hash 'X' instead of the expected hash 'Y'
    re.compile(
        r"with (?:\w+) hash '(?P<actual>[^']+)' "
        r"instead of the expected hash '(?P<expected>[^']+)'"),
]


@dataclass(frozen=True)
class HashMismatch:
    """
    The outcome of fetching a source whose declared hash was wrong.
    """

    expected: Optional[str]
    """
    The hash that was declared, if reported.
    """
    actual: str
    """
    The hash of the content that was actually fetched.
    """

    @classmethod
    def from_log(cls, log: str) -> Optional['HashMismatch']:
        """
        Scrape a hash mismatch from the diagnostic output of a fetch.

        Parameters
        ----------
        log : str
            The standard error of a failed fetch.

        Returns
        -------
        Optional[HashMismatch]
            The first mismatch reported in the log or None if the log
            does not report one in any known phrasing.
        """
        index = log.find(_FIXED_OUTPUT_MISMATCH)
        if index >= 0:
            tail = log[index + len(_FIXED_OUTPUT_MISMATCH):]
            got = _got_regex.search(tail)
            if got is not None:
                expected = _expected_regex.search(tail)
                return cls(
                    expected['hash'] if expected is not None else None,
                    got['hash'])
        for regex in _legacy_regexes:
            match = regex.search(log)
            if match is not None:
                return cls(match['expected'], match['actual'])
        return None


@dataclass
class FetchResult:
    """
    The outcome of an attempt to fetch a recipe's source.
    """

    success: bool
    log: str
    mismatch: Optional[HashMismatch] = None
    """
    The reported hash mismatch, if the fetcher recognized one.
    """
    log_path: Optional[Path] = None
    """
    A file to which `log` was saved, if any.
    """


class Fetcher(abc.ABC):
    """
    Downloads and hashes the sources of recipes.
    """

    @abc.abstractmethod
    def fetch_source(
            self,
            recipe: str,
            system: Optional[str] = None) -> FetchResult:
        """
        Attempt to fetch the source of the given recipe.

        Parameters
        ----------
        recipe : str
            The attribute path of the recipe.
        system : Optional[str], optional
            The build target for which to fetch.

        Returns
        -------
        FetchResult
            Whether the fetch succeeded alongside its diagnostic log.
        """
        ...


@dataclass
class NixFetcher(NixCommand, Fetcher):
    """
    A fetcher backed by ``nix-build``.

    The log of each fetch is saved to ``<log_dir>/<recipe>.fetchlog``.
    """

    nix_build: str = "nix-build"
    log_dir: Path = Path(".")

    def log_path(self, recipe: str) -> Path:
        """
        Get the file to which the fetch log of `recipe` is written.
        """
        return Path(self.log_dir) / f"{recipe}.fetchlog"

    def fetch_source(
            self,
            recipe: str,
            system: Optional[str] = None) -> FetchResult:
        """
        Build the recipe's source derivation.
        """
        r = self.run(
            [
                self.nix_build,
                *self.system_args(system),
                "--no-out-link",
                self.expression,
                "-A",
                f"{recipe}.src"
            ],
            check=False)
        log_path = self.log_path(recipe)
        atomic_write(log_path, r.stderr)
        success = r.returncode == 0
        if not success:
            logger.debug(f"Fetching {recipe}.src failed; see {log_path}")
        return FetchResult(
            success,
            r.stderr,
            HashMismatch.from_log(r.stderr),
            log_path)
