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
Advisory, exclusive file locks.
"""
import errno
import fcntl
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from recipebump.util.path import PathLike, append_suffix

logger = logging.getLogger(__name__)


class LockHeldError(OSError):
    """
    Exception indicating that another process holds the lock.
    """

    pass


@contextmanager
def exclusive_lock(path: PathLike) -> Generator[Path, None, None]:
    """
    Hold an exclusive lock on the given file for the context's duration.

    The lock is taken on a sibling ``.lock`` file rather than `path`
    itself since `path` may be atomically replaced while locked.
    The sibling file is removed when the lock is released, so a lock
    taken on a file that was meanwhile unlinked or replaced is dropped
    and retried on the file currently at the sibling path.

    Parameters
    ----------
    path : PathLike
        The file to guard.

    Yields
    ------
    Path
        The path of the lock file.

    Raises
    ------
    LockHeldError
        If another process already holds the lock.
    """
    lock_path = append_suffix(path, ".lock")
    fd = _acquire(path, lock_path)
    try:
        logger.debug(f"Acquired lock {lock_path}")
        try:
            yield lock_path
        finally:
            lock_path.unlink(missing_ok=True)
            fcntl.flock(fd, fcntl.LOCK_UN)
            logger.debug(f"Released lock {lock_path}")
    finally:
        os.close(fd)


def _acquire(path: PathLike, lock_path: Path) -> int:
    while True:
        fd = os.open(lock_path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            os.close(fd)
            if e.errno in (errno.EAGAIN, errno.EACCES):
                raise LockHeldError(
                    e.errno,
                    f"{path} is locked by another process",
                    str(lock_path)) from e
            raise
        if _is_current(fd, lock_path):
            return fd
        # the previous holder removed the file after we opened it
        logger.debug(f"Lock {lock_path} went stale, retrying")
        os.close(fd)


def _is_current(fd: int, lock_path: Path) -> bool:
    """
    Check whether the open file `fd` is still the one at `lock_path`.
    """
    try:
        on_disk = os.stat(lock_path)
    except FileNotFoundError:
        return False
    held = os.fstat(fd)
    return (held.st_dev, held.st_ino) == (on_disk.st_dev, on_disk.st_ino)
