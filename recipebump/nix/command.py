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
Running Nix commands.
"""
import logging
from dataclasses import dataclass, field
from subprocess import CalledProcessError, CompletedProcess
from typing import List, Optional, Sequence

from seutil import bash

from recipebump.util.bash import join_args
from recipebump.util.path import PathLike

logger = logging.getLogger(__name__)


@dataclass
class NixCommand:
    """
    Common configuration of Nix command invocations.
    """

    expression: str = "."
    """
    The expression of the package set in which recipes are looked up,
    typically the root of a Nixpkgs checkout.
    """
    extra_args: List[str] = field(default_factory=list)
    """
    Arguments passed verbatim to every invoked command.
    """
    cwd: Optional[PathLike] = None
    """
    The working directory of invoked commands.
    """

    @staticmethod
    def system_args(system: Optional[str]) -> List[str]:
        """
        Get the arguments selecting the given build target.
        """
        return [] if system is None else ["--system", system]

    def run(
            self,
            args: Sequence[str],
            check: bool = True) -> CompletedProcess:
        """
        Run a given command and optionally check for errors.

        Parameters
        ----------
        args : Sequence[str]
            The program followed by its arguments.
            `extra_args` are inserted right after the program.
        check : bool, optional
            Whether to raise an error for a nonzero return code, by
            default True.

        Returns
        -------
        CompletedProcess
            The result of the command.

        Raises
        ------
        CalledProcessError
            If `check` is True and the command fails.
        """
        program, *rest = args
        command = join_args([program, *self.extra_args, *rest])
        logger.debug(f"Running '{command}'")
        kwargs = {} if self.cwd is None else {'cwd': str(self.cwd)}
        r = bash.run(command, **kwargs)
        if check:
            self.check_returncode(command, r)
        return r

    @staticmethod
    def check_returncode(command: str, r: CompletedProcess) -> None:
        """
        Check the return code and log any errors.

        Parameters
        ----------
        command : str
            A command.
        r : CompletedProcess
            The result of the given `command`.
        """
        try:
            r.check_returncode()
        except CalledProcessError:
            logger.log(
                logging.CRITICAL,
                f"'{command}' returned {r.returncode}: {r.stdout} {r.stderr}")
            raise
