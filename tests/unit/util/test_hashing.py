"""Unit tests for credential hashing."""

import hashlib
import hmac

import pytest

from hubauth.domain.error import InvalidInputError
from hubauth.util.hashing import (
    generate_hash,
    generate_salt,
    password_hash,
    verify_password,
)


class TestGenerateHash:
    """Tests for generate_hash."""

    def test_hash_is_self_describing(self):
        """Hash should carry algorithm, salt and iteration count."""
        result = generate_hash("sha512", "pepper", 3, "secret")

        algorithm, salt, iterations, digest = result.split("$")
        assert algorithm == "sha512"
        assert salt == "pepper"
        assert iterations == "3"
        assert len(digest) == 128  # sha512 hex digest

    def test_single_round_is_plain_hmac(self):
        """One round should equal HMAC(salt, secret)."""
        expected = hmac.new(b"pepper", b"secret", hashlib.sha256).hexdigest()

        result = generate_hash("sha256", "pepper", 1, "secret")

        assert result == f"sha256$pepper$1${expected}"

    def test_later_rounds_hash_previous_hex_digest(self):
        """Round two should hash the hex digest of round one."""
        first = hmac.new(b"pepper", b"secret", hashlib.sha256).hexdigest()
        second = hmac.new(b"pepper", first.encode(), hashlib.sha256).hexdigest()

        result = generate_hash("sha256", "pepper", 2, "secret")

        assert result.endswith(f"${second}")

    def test_deterministic(self):
        """Same inputs should always give the same hash."""
        assert generate_hash("sha512", "s", 10, "x") == generate_hash(
            "sha512", "s", 10, "x"
        )

    @pytest.mark.parametrize("iterations", [0, -5, None, ""])
    def test_iterations_below_one_count_as_one(self, iterations):
        """Zero, negative or missing iteration counts should do one round."""
        result = generate_hash("sha512", "salt", iterations, "secret")

        assert result == generate_hash("sha512", "salt", 1, "secret")
        assert result.split("$")[2] == "1"

    def test_iterations_accepts_string(self):
        """Iterations parsed from a cookie arrive as a string."""
        assert generate_hash("sha512", "salt", "7", "x") == generate_hash(
            "sha512", "salt", 7, "x"
        )

    @pytest.mark.parametrize(
        "algorithm,salt",
        [(None, "salt"), ("", "salt"), ("sha512", None), ("sha512", "")],
    )
    def test_missing_algorithm_or_salt_raises(self, algorithm, salt):
        """Missing mandatory parameters are a programming error."""
        with pytest.raises(InvalidInputError, match="undefined arguments"):
            generate_hash(algorithm, salt, 10, "secret")

    def test_unknown_algorithm_raises(self):
        """Unknown hash algorithms should be refused."""
        with pytest.raises(InvalidInputError, match="unsupported"):
            generate_hash("md42", "salt", 10, "secret")

    @pytest.mark.parametrize("algorithm", ["shake_128", "shake_256"])
    def test_algorithm_without_hmac_form_raises(self, algorithm):
        """hashlib knows these, but HMAC cannot use them."""
        with pytest.raises(InvalidInputError, match="HMAC"):
            generate_hash(algorithm, "salt", 1, "secret")

    def test_iterations_above_maximum_raise(self):
        """The ceiling is checked before any hashing happens."""
        with pytest.raises(InvalidInputError, match="maximum"):
            generate_hash("sha512", "salt", 2_000_000, "secret", max_iterations=1000)

    def test_iterations_at_maximum_are_accepted(self):
        hashed = generate_hash("sha512", "salt", 1000, "secret", max_iterations=1000)

        assert hashed == generate_hash("sha512", "salt", 1000, "secret")

    def test_non_integer_iterations_raises(self):
        """Garbage iteration counts should be refused."""
        with pytest.raises(InvalidInputError, match="iterations"):
            generate_hash("sha512", "salt", "many", "secret")


class TestPasswordHash:
    """Tests for password_hash, generate_salt and verify_password."""

    def test_salt_has_requested_length_and_no_separator(self):
        """Salts should never contain the field separator."""
        for length in (1, 8, 32, 100):
            salt = generate_salt(length)
            assert len(salt) == length
            assert "$" not in salt

    def test_fresh_salt_each_time(self):
        """Hashing the same password twice should give different hashes."""
        first = password_hash("hunter2", "sha512", 32, 10)
        second = password_hash("hunter2", "sha512", 32, 10)

        assert first != second

    def test_verify_roundtrip(self):
        """A password should verify against its own hash."""
        stored = password_hash("hunter2", "sha512", 16, 10)

        assert verify_password("hunter2", stored)
        assert not verify_password("hunter3", stored)

    def test_old_policy_hashes_still_verify(self):
        """Hashes made under another policy should still verify."""
        stored = password_hash("hunter2", "sha256", 4, 3)

        assert verify_password("hunter2", stored)

    @pytest.mark.parametrize(
        "stored", [None, "", "garbage", "sha512$salt$10", "nope$salt$10$abc"]
    )
    def test_unusable_stored_hash_never_matches(self, stored):
        """Malformed stored hashes should fail closed."""
        assert not verify_password("hunter2", stored)
