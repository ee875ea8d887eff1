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
Miscellaneous Bash-related utilities.
"""
import re
from typing import Iterable

_escape_regex = re.compile(r'(["\\$`])')


def escape(arg: str) -> str:
    """
    Sanitize the given argument for use within double quotes.

    Parameters
    ----------
    arg : str
        An argument intended for a Bash command.

    Returns
    -------
    str
        The sanitized argument.
        Double quotes, backslashes, dollar signs, and backticks are
        escaped so that the argument is taken literally.
    """
    return _escape_regex.sub(r"\\\1", arg)


def quote(arg: str) -> str:
    """
    Escape the given argument and wrap it in double quotes.
    """
    return f'"{escape(arg)}"'


def join_args(args: Iterable[str]) -> str:
    """
    Assemble a Bash command from individually quoted arguments.

    Arguments that consist only of characters without special meaning
    to Bash are left unquoted for the sake of legible logs.
    """
    return ' '.join(
        a if _plain_regex.fullmatch(a) else quote(a) for a in args)


_plain_regex = re.compile(r"[A-Za-z0-9_./:=+@%-]+")
