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
Test suite for `recipebump.hashes`.
"""
import hashlib
import unittest

from recipebump import hashes
from recipebump.exception import UnsupportedHashError
from recipebump.hashes import HashSpec

# source hashes of quantum-espresso 6.4.1 and bazel-remote 2020-01-29
QE_HASH = "027skhp2zzx0f4mh6azqjljdimchak5cdn13v4x7aj5q2zvfkmxh"
BAZEL_REMOTE_HASH = "1jbd319n255cmmncnjfdkdcpx0x62asp3dqwgl6vimx4dqqj8v1p"


class TestHashes(unittest.TestCase):
    """
    Test suite for digest encodings.
    """

    def test_lengths(self):
        """
        Verify the encoded lengths of supported digests.
        """
        self.assertEqual(hashes.hex_length("sha256"), 64)
        self.assertEqual(hashes.hex_length("sha512"), 128)
        self.assertEqual(hashes.base32_length("sha256"), 52)
        self.assertEqual(hashes.base32_length("sha512"), 103)
        self.assertEqual(hashes.base64_length("sha256"), 44)
        self.assertEqual(hashes.base64_length("sha512"), 88)
        with self.assertRaises(UnsupportedHashError):
            hashes.hex_length("md5")

    def test_placeholder(self):
        """
        Verify that placeholders are all zeros of the hex length.
        """
        self.assertEqual(hashes.placeholder("sha256"), "0" * 64)
        self.assertEqual(hashes.placeholder("sha512"), "0" * 128)

    def test_nix_base32(self):
        """
        Verify Nix's base32 encoding against real recipe hashes.
        """
        for encoded in [QE_HASH, BAZEL_REMOTE_HASH]:
            with self.subTest(encoded):
                digest = hashes.nix_base32_decode(encoded)
                self.assertEqual(len(digest), 32)
                self.assertEqual(hashes.nix_base32_encode(digest), encoded)
        self.assertEqual(hashes.nix_base32_encode(bytes(32)), "0" * 52)
        digest = hashlib.sha512(b"recipebump").digest()
        self.assertEqual(
            hashes.nix_base32_decode(hashes.nix_base32_encode(digest)),
            digest)
        with self.assertRaises(ValueError):
            # 'e' is not in the alphabet
            hashes.nix_base32_decode("e" * 52)
        with self.assertRaises(ValueError):
            # the leading character may only carry one bit
            hashes.nix_base32_decode("2" + "0" * 51)

    def test_decode_digest(self):
        """
        Verify that encodings are inferred from their lengths.
        """
        digest = hashlib.sha256(b"").digest()
        self.assertEqual(
            hashes.decode_digest("sha256",
                                 digest.hex()),
            digest)
        self.assertEqual(
            hashes.decode_digest("sha256",
                                 hashes.nix_base32_encode(digest)),
            digest)
        self.assertEqual(
            hashes.decode_digest(
                "sha256",
                "47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU="),
            digest)
        with self.assertRaises(ValueError):
            hashes.decode_digest("sha256", "abc")


class TestHashSpec(unittest.TestCase):
    """
    Test suite for `HashSpec`.
    """

    def test_parse(self):
        """
        Verify detection of bare and combined hashes.
        """
        bare = HashSpec.parse(QE_HASH, "sha256")
        self.assertFalse(bare.is_combined)
        self.assertEqual(bare.algorithm, "sha256")
        self.assertEqual(str(bare), QE_HASH)
        combined = HashSpec.parse(f"sha512:{'f' * 128}", "null")
        self.assertTrue(combined.is_combined)
        self.assertEqual(combined.algorithm, "sha512")
        self.assertEqual(combined.digest, "f" * 128)
        self.assertEqual(str(combined), f"sha512:{'f' * 128}")
        with self.assertRaises(UnsupportedHashError):
            HashSpec.parse(QE_HASH, "null")
        with self.assertRaises(UnsupportedHashError):
            HashSpec.parse(QE_HASH)

    def test_sri_placeholder(self):
        """
        Verify that an SRI placeholder keeps its algorithm and form.
        """
        for algorithm in hashes.DIGEST_SIZES:
            with self.subTest(algorithm):
                sri = hashes.to_sri(algorithm, hashes.placeholder(algorithm))
                spec = HashSpec.parse(sri)
                self.assertEqual(spec.algorithm, algorithm)
                self.assertTrue(spec.is_sri)
                self.assertEqual(
                    spec.to_bytes(),
                    bytes(hashes.digest_size(algorithm)))

    def test_to_sri(self):
        """
        Verify conversion of each encoding to SRI form.
        """
        digest = hashlib.sha256(b"").digest()
        expected = "sha256-47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU="
        for encoded in [digest.hex(),
                        hashes.nix_base32_encode(digest),
                        f"sha256:{digest.hex()}",
                        expected]:
            with self.subTest(encoded):
                self.assertEqual(hashes.to_sri("sha256", encoded), expected)
        with self.assertRaises(ValueError):
            hashes.to_sri("sha512", expected)
        self.assertFalse(HashSpec.parse(f"sha256:{digest.hex()}").is_sri)


if __name__ == '__main__':
    unittest.main()
