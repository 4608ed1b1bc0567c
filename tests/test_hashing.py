"""Tests for the digest primitive."""

import pytest

from inkeep_gateway.core.hashing import HashAlgorithm, digest
from inkeep_gateway.domain.exceptions import GatewayError, UnsupportedAlgorithmError

ABC_SHA256 = "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
ABC_SHA384 = (
    "cb00753f45a35e8bb5a03d699ac65007272c32ab0eded1631a8b605a43ff5bed"
    "8086072ba1e7cc2358baeca134c825a7"
)
ABC_SHA512 = (
    "ddaf35a193617abacc417349ae20413112e6fa4e89a97ea20a9eeee64b55d39a"
    "2192992a274fc1a836ba3c23a3feebbd454d4423643ce80e2a9ac94fa54ca49f"
)


class TestDigest:
    @pytest.mark.parametrize(
        ("algorithm", "expected"),
        [("sha256", ABC_SHA256), ("sha384", ABC_SHA384), ("sha512", ABC_SHA512)],
    )
    def test_known_vectors(self, algorithm, expected):
        assert digest(algorithm, b"abc") == expected

    def test_server_style_name(self):
        assert digest("SHA-256", b"abc") == ABC_SHA256

    def test_output_is_lowercase_hex_of_fixed_width(self):
        for algorithm in HashAlgorithm:
            result = digest(algorithm.value, b"salt42")
            assert len(result) == algorithm.hex_width
            assert result == result.lower()
            int(result, 16)

    def test_empty_input(self):
        assert (
            digest("sha256", b"")
            == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_unsupported_algorithm(self):
        with pytest.raises(UnsupportedAlgorithmError) as exc_info:
            digest("md5", b"abc")
        assert isinstance(exc_info.value, GatewayError)
        assert isinstance(exc_info.value, ValueError)


class TestHashAlgorithmParse:
    @pytest.mark.parametrize("name", ["sha256", "SHA256", "SHA-256", " sha-256 "])
    def test_accepts_name_variants(self, name):
        assert HashAlgorithm.parse(name) is HashAlgorithm.SHA256

    @pytest.mark.parametrize("name", ["sha1", "SHA-1", "blake2b", ""])
    def test_rejects_other_names(self, name):
        with pytest.raises(UnsupportedAlgorithmError):
            HashAlgorithm.parse(name)

    def test_hex_width(self):
        assert HashAlgorithm.SHA256.hex_width == 64
        assert HashAlgorithm.SHA384.hex_width == 96
        assert HashAlgorithm.SHA512.hex_width == 128
