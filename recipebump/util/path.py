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
System path utilities.
"""
import os
from pathlib import Path
from typing import Union

PathLike = Union[str, os.PathLike]


def append_suffix(path: PathLike, suffix: str) -> Path:
    """
    Add a new suffix to the end of the path.

    The name of the path is otherwise kept verbatim, which matters for
    dotted names such as ``default.nix`` or ``python3Packages.foo``.
    """
    path = Path(path)
    return path.with_name(path.name + suffix)
