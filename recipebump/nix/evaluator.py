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
Querying recipe metadata from an evaluator.
"""
import abc
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import ujson

from .command import NixCommand

logger = logging.getLogger(__name__)

_position_regex = re.compile(r"^(?P<path>.*):[0-9]+$")


def parse_drv_name(name: str) -> Tuple[str, str]:
    """
    Split a derivation name into its package name and version.

    The split occurs at the first dash that is not followed by a
    letter, e.g., ``"foo-bar-1.2"`` becomes ``("foo-bar", "1.2")``.
    If there is no such dash, then the version is empty.
    """
    for i, char in enumerate(name):
        if (char == "-" and i + 1 < len(name)
                and not name[i + 1].isalpha()):
            return name[: i], name[i + 1 :]
    return name, ""


class Evaluator(abc.ABC):
    """
    Resolves attributes of recipes to strings.

    Only `evaluate` and `to_encoded_form` must be implemented.
    The remaining queries are phrased in terms of `evaluate` using the
    attribute layout of Nixpkgs derivations.
    """

    @abc.abstractmethod
    def evaluate(
            self,
            attribute: str,
            system: Optional[str] = None) -> Optional[str]:
        """
        Evaluate an attribute path.

        Parameters
        ----------
        attribute : str
            A dot-separated attribute path, e.g., ``"hello.version"``.
            Integer components index lists.
        system : Optional[str], optional
            The build target for which to evaluate, by default the
            evaluator's native one.

        Returns
        -------
        Optional[str]
            The value rendered as a string, i.e., strings are returned
            unquoted and null as ``"null"``.
            None if the attribute could not be evaluated.
        """
        ...

    @abc.abstractmethod
    def to_encoded_form(self, algorithm: str, digest: str) -> str:
        """
        Convert a digest to the combined, self-describing (SRI) form.

        Raises
        ------
        ValueError
            If the digest cannot be converted.
        CalledProcessError
            If a conversion command fails.
        """
        ...

    def position(
            self,
            recipe: str,
            system: Optional[str] = None) -> Optional[Path]:
        """
        Get the path of the file that defines the recipe.
        """
        position = self.evaluate(f"{recipe}.meta.position", system)
        if not position:
            return None
        match = _position_regex.match(position)
        return Path(match['path'] if match is not None else position)

    def hash_algorithm(
            self,
            recipe: str,
            system: Optional[str] = None) -> Optional[str]:
        """
        Get the algorithm of the recipe's source hash.

        The result is ``"null"`` if the hash is in a combined form.
        """
        return self.evaluate(f"{recipe}.src.drvAttrs.outputHashAlgo", system)

    def hash_value(
            self,
            recipe: str,
            system: Optional[str] = None) -> Optional[str]:
        """
        Get the recipe's source hash.
        """
        return self.evaluate(f"{recipe}.src.drvAttrs.outputHash", system)

    def source_url(
            self,
            recipe: str,
            system: Optional[str] = None) -> Optional[str]:
        """
        Get the first URL from which the recipe's source is fetched.
        """
        return self.evaluate(f"{recipe}.src.drvAttrs.urls.0", system)

    def display_name(
            self,
            recipe: str,
            system: Optional[str] = None) -> Optional[str]:
        """
        Get the package name of the recipe without its version.
        """
        pname = self.evaluate(f"{recipe}.pname", system)
        if pname:
            return pname
        name = self.evaluate(f"{recipe}.name", system)
        return parse_drv_name(name)[0] if name else None

    def version(
            self,
            recipe: str,
            version_key: str = "version",
            system: Optional[str] = None) -> Optional[str]:
        """
        Get the recipe's current version.

        The attribute named by `version_key` is preferred, falling back
        to the version component of the recipe's name.
        """
        version = self.evaluate(f"{recipe}.{version_key}", system)
        if version:
            return version
        name = self.evaluate(f"{recipe}.name", system)
        if not name:
            return None
        return parse_drv_name(name)[1] or None


@dataclass
class NixEvaluator(NixCommand, Evaluator):
    """
    An evaluator backed by ``nix-instantiate``.
    """

    nix_instantiate: str = "nix-instantiate"
    nix: str = "nix"

    def evaluate(
            self,
            attribute: str,
            system: Optional[str] = None) -> Optional[str]:
        """
        Evaluate an attribute path with ``nix-instantiate --eval``.
        """
        r = self.run(
            [
                self.nix_instantiate,
                *self.system_args(system),
                "--eval",
                "--strict",
                "--json",
                self.expression,
                "-A",
                attribute
            ],
            check=False)
        if r.returncode != 0:
            logger.debug(
                f"Could not evaluate '{attribute}': {r.stderr.strip()}")
            return None
        try:
            value = ujson.loads(r.stdout)
        except ValueError as e:
            logger.debug(
                f"Could not decode the value of '{attribute}': {e}")
            return None
        if value is None:
            return "null"
        elif isinstance(value, str):
            return value
        elif isinstance(value, bool):
            return str(value).lower()
        return ujson.dumps(value)

    def to_encoded_form(self, algorithm: str, digest: str) -> str:
        """
        Convert a digest to SRI form with ``nix hash to-sri``.
        """
        r = self.run(
            [
                self.nix,
                "--extra-experimental-features",
                "nix-command",
                "hash",
                "to-sri",
                "--type",
                algorithm,
                digest
            ])
        return r.stdout.strip()
