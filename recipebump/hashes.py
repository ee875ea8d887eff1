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
Content hashes as they appear in recipes.

A hash is written either as a bare digest, whose algorithm is declared
separately (e.g., ``sha256 = "..."``), or in a combined,
self-describing form that embeds the algorithm (e.g.,
``hash = "sha256-..."`` in SRI notation or Nix's ``sha256:...``).
Bare digests may use one of three encodings: hexadecimal, Nix's own
base32 variant, or base64.
"""
import base64
import binascii
import re
from dataclasses import dataclass
from typing import ClassVar, Dict, Optional

from recipebump.exception import UnsupportedHashError

DIGEST_SIZES: Dict[str, int] = {
    'sha256': 32,
    'sha512': 64,
}
"""
The supported hash algorithms mapped to their digest sizes in bytes.
"""

NIX_BASE32_CHARS = "0123456789abcdfghijklmnpqrsvwxyz"
"""
The alphabet of Nix's base32 encoding, which omits ``e o t u``.
"""

_combined_regex = re.compile(
    r"^(?P<algorithm>{})(?P<separator>[:-])(?P<digest>.*)$".format(
        '|'.join(DIGEST_SIZES)))
_hex_regex = re.compile(r"[0-9a-fA-F]*")
_base32_regex = re.compile(f"[{NIX_BASE32_CHARS}]*")
_base64_regex = re.compile(r"[A-Za-z0-9+/]*={0,2}")


def digest_size(algorithm: str) -> int:
    """
    Get the size in bytes of digests produced by the given algorithm.

    Raises
    ------
    UnsupportedHashError
        If `algorithm` is not supported.
    """
    try:
        return DIGEST_SIZES[algorithm]
    except KeyError:
        raise UnsupportedHashError(
            f"Unhandled hash algorithm '{algorithm}'") from None


def hex_length(algorithm: str) -> int:
    """
    Get the length of a hex-encoded digest of the given algorithm.
    """
    return 2 * digest_size(algorithm)


def base32_length(algorithm: str) -> int:
    """
    Get the length of a Nix base32-encoded digest.
    """
    return (digest_size(algorithm) * 8 - 1) // 5 + 1


def base64_length(algorithm: str) -> int:
    """
    Get the length of a padded base64-encoded digest.
    """
    return (digest_size(algorithm) + 2) // 3 * 4


def placeholder(algorithm: str) -> str:
    """
    Get an all-zero, hex-encoded digest of the right length.
    """
    return "0" * hex_length(algorithm)


def nix_base32_encode(digest: bytes) -> str:
    """
    Encode bytes with Nix's base32 variant.

    Unlike RFC 4648, Nix consumes the input from its last bit to its
    first and uses a custom alphabet.
    """
    length = (len(digest) * 8 - 1) // 5 + 1
    chars = []
    for n in reversed(range(length)):
        b = n * 5
        i, j = divmod(b, 8)
        c = digest[i] >> j
        if i + 1 < len(digest):
            c |= digest[i + 1] << (8 - j)
        chars.append(NIX_BASE32_CHARS[c & 0x1f])
    return ''.join(chars)


def nix_base32_decode(encoded: str) -> bytes:
    """
    Decode a string produced by `nix_base32_encode`.

    Raises
    ------
    ValueError
        If `encoded` contains characters outside the alphabet or
        encodes more bits than fit in the implied digest size.
    """
    size = len(encoded) * 5 // 8
    digest = bytearray(size)
    for k, char in enumerate(encoded):
        value = NIX_BASE32_CHARS.find(char)
        if value < 0:
            raise ValueError(f"Invalid character {char!r} in base32 digest")
        n = len(encoded) - k - 1
        b = n * 5
        i, j = divmod(b, 8)
        if i >= size:
            if value:
                raise ValueError("Invalid base32 digest: excess bits")
            continue
        digest[i] |= (value << j) & 0xff
        carry = value >> (8 - j)
        if i + 1 < size:
            digest[i + 1] |= carry
        elif carry:
            raise ValueError("Invalid base32 digest: excess bits")
    return bytes(digest)


def decode_digest(algorithm: str, digest: str) -> bytes:
    """
    Decode a bare digest, inferring its encoding from its length.

    Parameters
    ----------
    algorithm : str
        The algorithm that produced the digest.
    digest : str
        A hex, Nix base32, or base64 encoding of the digest.

    Returns
    -------
    bytes
        The raw digest.

    Raises
    ------
    ValueError
        If the digest is not a valid encoding for the algorithm.
    UnsupportedHashError
        If `algorithm` is not supported.
    """
    if (len(digest) == hex_length(algorithm)
            and _hex_regex.fullmatch(digest)):
        return bytes.fromhex(digest)
    elif (len(digest) == base32_length(algorithm)
          and _base32_regex.fullmatch(digest)):
        return nix_base32_decode(digest)
    elif (len(digest) == base64_length(algorithm)
          and _base64_regex.fullmatch(digest)):
        try:
            return base64.b64decode(digest, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 digest '{digest}'") from e
    raise ValueError(
        f"'{digest}' is not a valid {algorithm} digest in any encoding")


@dataclass(frozen=True)
class HashSpec:
    """
    A hash algorithm paired with an encoded digest.
    """

    algorithm: str
    """
    The name of the hash algorithm, e.g., ``"sha256"``.
    """
    digest: str
    """
    The encoded digest without any algorithm prefix.
    """
    separator: Optional[str] = None
    """
    The separator between algorithm and digest in combined form.

    If None, then the hash is a bare digest.
    """

    SRI_SEPARATOR: ClassVar[str] = "-"

    def __str__(self) -> str:
        """
        Get the hash as written in a recipe.
        """
        if self.separator is None:
            return self.digest
        return f"{self.algorithm}{self.separator}{self.digest}"

    @property
    def is_combined(self) -> bool:
        """
        Whether the algorithm is embedded in the hash's text.
        """
        return self.separator is not None

    @property
    def is_sri(self) -> bool:
        """
        Whether the hash is a well-formed SRI hash.
        """
        if self.separator != self.SRI_SEPARATOR:
            return False
        try:
            return (
                len(self.digest) == base64_length(self.algorithm)
                and _base64_regex.fullmatch(self.digest) is not None
                and len(base64.b64decode(self.digest,
                                         validate=True)) == digest_size(
                                             self.algorithm))
        except (binascii.Error, UnsupportedHashError):
            return False

    def to_bytes(self) -> bytes:
        """
        Decode the digest.
        """
        return decode_digest(self.algorithm, self.digest)

    def to_sri(self) -> 'HashSpec':
        """
        Convert this hash into SRI form, i.e., ``<algorithm>-<base64>``.
        """
        encoded = base64.b64encode(self.to_bytes()).decode('ascii')
        return HashSpec(self.algorithm, encoded, self.SRI_SEPARATOR)

    @classmethod
    def parse(
            cls,
            value: str,
            reported_algorithm: Optional[str] = None) -> 'HashSpec':
        """
        Parse a hash as it appears in a recipe.

        Parameters
        ----------
        value : str
            The hash's text.
        reported_algorithm : Optional[str], optional
            The algorithm declared separately from the hash, if any.
            ``"null"`` is treated the same as None.

        Returns
        -------
        HashSpec
            The parsed hash.
            If `value` is in combined form, then its embedded algorithm
            takes precedence over `reported_algorithm`.

        Raises
        ------
        UnsupportedHashError
            If `value` is a bare digest and no algorithm was reported.
        """
        match = _combined_regex.match(value)
        if match is not None:
            return cls(
                match['algorithm'],
                match['digest'],
                match['separator'])
        if reported_algorithm is None or reported_algorithm == "null":
            raise UnsupportedHashError(
                f"Unable to figure out hashing scheme from '{value}'")
        return cls(reported_algorithm, value)


def to_sri(algorithm: str, digest: str) -> str:
    """
    Convert a digest to SRI form.

    Parameters
    ----------
    algorithm : str
        The algorithm that produced the digest.
    digest : str
        The digest in any supported encoding, optionally already in a
        combined form.

    Returns
    -------
    str
        The SRI form of the digest.

    Raises
    ------
    ValueError
        If `digest` is combined with a different algorithm or is not a
        valid encoding.
    """
    spec = HashSpec.parse(digest, algorithm)
    if spec.algorithm != algorithm:
        raise ValueError(
            f"Digest '{digest}' was not produced by {algorithm}")
    return str(spec.to_sri())
