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
Bump the version and source hash of a recipe.
"""
import logging
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from subprocess import CalledProcessError
from typing import Optional, Tuple

from recipebump import hashes
from recipebump.exception import (
    ConcurrentUpdateError,
    HashResolutionError,
    InputValidationError,
    MetadataResolutionError,
    PatternMatchError,
    UnchangedHashError,
)
from recipebump.hashes import HashSpec
from recipebump.nix import Evaluator, Fetcher, HashMismatch
from recipebump.recipe import Recipe
from recipebump.util.lock import LockHeldError, exclusive_lock
from recipebump.util.path import PathLike

logger = logging.getLogger(__name__)


@dataclass
class UpdateRequest:
    """
    A request to bump a recipe to a new version.
    """

    recipe: str
    """
    The attribute path of the recipe, e.g., ``"quantum-espresso"``.
    """
    new_version: str
    new_hash: Optional[str] = None
    """
    The new source hash.

    If None, then the hash is learned by fetching the new source.
    """
    new_url: Optional[str] = None
    """
    A new source URL to replace the current one, if any.
    """
    version_key: str = "version"
    """
    The attribute that holds the version.
    """
    system: Optional[str] = None
    """
    The build target for which the recipe is evaluated and fetched.
    """
    file: Optional[PathLike] = None
    """
    The file to edit instead of the one in which the recipe is defined.
    """
    ignore_same_hash: bool = False
    """
    Whether to accept a new hash equal to the old one.
    """


@dataclass
class UpdateResult:
    """
    The outcome of a successful update.
    """

    recipe: str
    path: Path
    old_version: str
    new_version: str
    old_hash: str
    new_hash: Optional[str] = None
    """
    The hash written to the recipe or None if nothing changed.
    """

    @property
    def changed(self) -> bool:
        """
        Whether the recipe file was modified.
        """
        return self.new_hash is not None


class RecipeUpdater:
    """
    Rewrites recipes to use new versions of their sources.

    Parameters
    ----------
    evaluator : Evaluator
        Resolves the current metadata of recipes.
    fetcher : Fetcher
        Fetches sources to learn their hashes.
    lock : bool, optional
        Whether to hold an exclusive lock on the recipe file while it
        is being updated, by default True.
    """

    def __init__(
            self,
            evaluator: Evaluator,
            fetcher: Fetcher,
            lock: bool = True) -> None:
        self.evaluator = evaluator
        self.fetcher = fetcher
        self.lock = lock

    def resolve_path(self, request: UpdateRequest) -> Path:
        """
        Find the file to edit.

        Raises
        ------
        InputValidationError
            If an explicitly given file does not exist.
        MetadataResolutionError
            If the recipe's defining file cannot be determined.
        """
        if request.file is not None:
            path = Path(request.file)
            if not path.is_file():
                raise InputValidationError(
                    f"Could not find provided file {request.file}")
            return path
        path = self.evaluator.position(request.recipe, request.system)
        if path is None or not path.is_file():
            raise MetadataResolutionError(
                f"Couldn't evaluate '{request.recipe}.meta.position' "
                "to locate the recipe file")
        return path

    def update(self, request: UpdateRequest) -> UpdateResult:
        """
        Bump the recipe to the requested version.

        Either every edit is applied or the recipe file is left with its
        original contents.

        Parameters
        ----------
        request : UpdateRequest
            The recipe and its new version.

        Returns
        -------
        UpdateResult
            A description of what was changed.

        Raises
        ------
        UpdateError
            If any step of the update fails.
        """
        path = self.resolve_path(request)
        with ExitStack() as stack:
            if self.lock:
                try:
                    stack.enter_context(exclusive_lock(path))
                except LockHeldError as e:
                    raise ConcurrentUpdateError(
                        f"Another update of '{path}' is in progress") from e
            return self._update(request, path)

    def _update(self, request: UpdateRequest, path: Path) -> UpdateResult:
        evaluator = self.evaluator
        recipe, system = request.recipe, request.system
        old_hash_algo = evaluator.hash_algorithm(recipe, system)
        old_hash = evaluator.hash_value(recipe, system)
        if not old_hash_algo or not old_hash:
            raise MetadataResolutionError(
                f"Couldn't evaluate old source hash from '{recipe}.src'")

        recipe_file = Recipe(path)
        if recipe_file.count(old_hash) != 1:
            raise PatternMatchError(
                f"Couldn't locate old source hash '{old_hash}' "
                f"(or it appeared more than once) in '{path}'")

        old_url = evaluator.source_url(recipe, system)
        if not old_url:
            raise MetadataResolutionError(
                f"Couldn't evaluate source url from '{recipe}.src'")
        name = evaluator.display_name(recipe, system)
        old_version = evaluator.version(recipe, request.version_key, system)
        if not name or not old_version:
            raise MetadataResolutionError(
                f"Couldn't evaluate name and version from '{recipe}.name'")

        result = UpdateResult(
            recipe,
            path,
            old_version,
            request.new_version,
            old_hash)
        if old_version == request.new_version:
            logger.info("New version same as old version, nothing to do.")
            return result

        declaration = recipe_file.find_version(
            request.version_key,
            old_version)
        old_spec = HashSpec.parse(old_hash, old_hash_algo)
        temp_hash = hashes.placeholder(old_spec.algorithm)
        if old_spec.is_combined:
            temp_hash = self._encode(old_spec.algorithm, temp_hash)
        logger.debug(f"Updating {name} in {path} from {old_version}")

        log_path = None
        with recipe_file.transaction():
            recipe_file.replace_version(
                declaration,
                old_version,
                request.new_version)
            if request.new_url:
                recipe_file.replace_literal(
                    old_url,
                    request.new_url,
                    f"Failed to replace source URL '{old_url}' to "
                    f"'{request.new_url}' in '{recipe}'")
            recipe_file.replace_literal(
                old_hash,
                temp_hash,
                f"Failed to replace source hash of '{recipe}' "
                "to a temporary hash")

            new_hash = request.new_hash
            if not new_hash:
                new_hash, log_path = self._fetch_hash(request, old_spec)

            if not request.ignore_same_hash and self._same_hash(old_spec,
                                                                new_hash):
                raise UnchangedHashError(
                    "Both the old and new source hashes of "
                    f"'{recipe}.src' were equivalent. "
                    "Please fix the package's source URL to be dependent "
                    "on '${version}'!")

            recipe_file.replace_literal(
                temp_hash,
                new_hash,
                f"Failed to replace temporary source hash of '{recipe}' "
                "to the final source hash")

        if log_path is not None:
            log_path.unlink(missing_ok=True)
        result.new_hash = new_hash
        logger.info(
            f"Updated {recipe} from {old_version} to "
            f"{request.new_version} ({new_hash})")
        return result

    def _encode(self, algorithm: str, digest: str) -> str:
        try:
            return self.evaluator.to_encoded_form(algorithm, digest)
        except (CalledProcessError, ValueError) as e:
            raise HashResolutionError(
                f"Couldn't convert '{digest}' to a {algorithm} SRI hash"
            ) from e

    def _fetch_hash(
            self,
            request: UpdateRequest,
            old_spec: HashSpec) -> Tuple[str,
                                         Optional[Path]]:
        """
        Learn the new source hash by fetching the recipe's source.

        The recipe must currently declare a placeholder hash so that
        the fetch is guaranteed to report a mismatch.
        """
        result = self.fetcher.fetch_source(request.recipe, request.system)
        mismatch = result.mismatch
        if mismatch is None:
            mismatch = HashMismatch.from_log(result.log)
        if mismatch is None:
            raise HashResolutionError(
                f"Couldn't figure out new hash of '{request.recipe}.src'",
                log=result.log)
        new_hash = mismatch.actual
        if old_spec.is_combined:
            new_hash = self._encode(old_spec.algorithm, new_hash)
        else:
            # a bare digest stays bare even if reported as sha256-...
            new_hash = HashSpec.parse(new_hash, old_spec.algorithm).digest
        return new_hash, result.log_path

    @staticmethod
    def _same_hash(old_spec: HashSpec, new_hash: str) -> bool:
        """
        Check whether two hashes denote the same digest.

        Hashes are compared by digest when both can be decoded so that,
        e.g., hex and base32 encodings of one digest are equal.
        """
        if str(old_spec) == new_hash:
            return True
        try:
            new_spec = HashSpec.parse(new_hash, old_spec.algorithm)
            return (
                new_spec.algorithm == old_spec.algorithm
                and new_spec.to_bytes() == old_spec.to_bytes())
        except ValueError:
            return False
