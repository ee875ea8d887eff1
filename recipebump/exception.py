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
Defines exceptions raised while updating a recipe.

Each exception corresponds to one category of failure.
All of them are terminal for a single update.
"""

from typing import Optional


class UpdateError(Exception):
    """
    Base class of all recipe update failures.
    """

    exit_status: int = 1

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.msg = msg

    def __str__(self) -> str:  # noqa: D105
        return self.msg


class InputValidationError(UpdateError):
    """
    Exception indicating bad command-line arguments or a missing file.
    """

    pass


class ConfigurationError(InputValidationError):
    """
    Exception indicating a malformed configuration file.
    """

    pass


class ConcurrentUpdateError(InputValidationError):
    """
    Exception indicating that another update holds the recipe's lock.
    """

    pass


class MetadataResolutionError(UpdateError):
    """
    Exception indicating that the evaluator could not produce a field.
    """

    pass


class UnsupportedHashError(MetadataResolutionError):
    """
    Exception indicating an unhandled or indeterminate hash scheme.
    """

    pass


class PatternMatchError(UpdateError):
    """
    Exception indicating that expected text was not found exactly once.

    Also raised when a replacement left the recipe unchanged.
    """

    pass


class HashResolutionError(UpdateError):
    """
    Exception indicating that fetching did not yield a usable hash.
    """

    def __init__(self, msg: str, log: Optional[str] = None) -> None:
        super().__init__(msg)
        self.log = log

    def __reduce__(self):  # noqa: D105
        return HashResolutionError, (self.msg, self.log)


class UnchangedHashError(UpdateError):
    """
    Exception indicating that the source hash survived a version change.

    This implies that the source URL does not depend on the version.
    """

    pass
