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
Utilities for reading and writing files.
"""
import os
import shutil
import tempfile
from pathlib import Path

from seutil import io

from recipebump.util.path import PathLike


def read_text(path: PathLike) -> str:
    """
    Read the entire contents of a text file.
    """
    return io.load(str(path), io.Fmt.txt)


def atomic_write(full_file_path: PathLike, file_contents: str) -> None:
    r"""
    Write a message to a text file.

    Any existing file contents are overwritten and the permissions of
    the existing file, if any, are preserved.

    Parameters
    ----------
    full_file_path : PathLike
        Full file path, including directory, filename, and extension, to
        write to
    file_contents : str
        The contents to write to the file.

    Raises
    ------
    TypeError
        If `file_contents` is not a string.
    """
    if not isinstance(file_contents, str):
        raise TypeError(
            f"Cannot write object of type {type(file_contents)} to file")
    full_file_path = Path(full_file_path)
    directory = full_file_path.parent
    if not directory.exists():
        os.makedirs(str(directory))
    # Ensure that we write atomically.
    # First, we write to a temporary file so that if we get
    # interrupted, we aren't left with a corrupted file.
    with tempfile.NamedTemporaryFile("w",
                                     delete=False,
                                     dir=directory,
                                     encoding='utf-8',
                                     newline='') as f:
        f.write(file_contents)
    if full_file_path.exists():
        shutil.copymode(full_file_path, f.name)
    # Then, we atomically move the file to the correct, final path.
    os.replace(f.name, full_file_path)
