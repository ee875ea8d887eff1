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
Configuration of the commands and files used by an update.
"""
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from seutil import io

from recipebump.exception import ConfigurationError
from recipebump.nix import NixEvaluator, NixFetcher
from recipebump.updater import RecipeUpdater
from recipebump.util.logging import log_and_raise
from recipebump.util.path import PathLike

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RECIPEBUMP_CONFIG"


@dataclass
class UpdaterConfig:
    """
    Settings of a `RecipeUpdater` backed by Nix.

    Every field may be overridden from a YAML mapping with keys of the
    same names.
    """

    nix_instantiate: str = "nix-instantiate"
    """
    The command used to evaluate recipe attributes.
    """
    nix_build: str = "nix-build"
    """
    The command used to fetch recipe sources.
    """
    nix: str = "nix"
    """
    The command used to convert hashes to SRI form.
    """
    expression: str = "."
    """
    The package set in which recipes are looked up.
    """
    fetch_log_dir: str = "."
    """
    The directory in which fetch logs are saved.
    """
    lock: bool = True
    """
    Whether to lock recipe files while they are updated.
    """
    extra_args: List[str] = field(default_factory=list)
    """
    Arguments passed to every Nix command.
    """

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'UpdaterConfig':
        """
        Create a configuration from a mapping of field values.

        Raises
        ------
        ConfigurationError
            If `data` is not a mapping or has unknown keys.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            log_and_raise(
                logger,
                f"Expected a mapping of settings, got {type(data).__name__}",
                ConfigurationError)
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            log_and_raise(
                logger,
                f"Unknown configuration keys: {', '.join(unknown)}",
                ConfigurationError)
        if not isinstance(data.get("extra_args", []), list):
            log_and_raise(
                logger,
                "'extra_args' must be a list",
                ConfigurationError)
        return cls(**data)

    @classmethod
    def load(cls, path: Optional[PathLike] = None) -> 'UpdaterConfig':
        """
        Load a configuration file.

        Parameters
        ----------
        path : Optional[PathLike], optional
            A YAML file.
            If None, then the file named by the ``RECIPEBUMP_CONFIG``
            environment variable is used, if any.
            Otherwise, the defaults are returned.

        Raises
        ------
        ConfigurationError
            If the file does not exist or cannot be parsed.
        """
        if path is None:
            path = os.environ.get(CONFIG_ENV_VAR)
            if not path:
                return cls()
        path = Path(path)
        if not path.is_file():
            log_and_raise(
                logger,
                f"Could not find configuration file {path}",
                ConfigurationError)
        try:
            data = io.load(str(path), io.Fmt.yaml)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Could not parse configuration file {path}: {e}") from e
        return cls.from_dict(data)

    def make_evaluator(self) -> NixEvaluator:
        """
        Create the configured evaluator.
        """
        return NixEvaluator(
            expression=self.expression,
            extra_args=list(self.extra_args),
            nix_instantiate=self.nix_instantiate,
            nix=self.nix)

    def make_fetcher(self) -> NixFetcher:
        """
        Create the configured fetcher.
        """
        return NixFetcher(
            expression=self.expression,
            extra_args=list(self.extra_args),
            nix_build=self.nix_build,
            log_dir=Path(self.fetch_log_dir))

    def make_updater(self) -> RecipeUpdater:
        """
        Create an updater from the configured collaborators.
        """
        return RecipeUpdater(
            self.make_evaluator(),
            self.make_fetcher(),
            lock=self.lock)
