"""Salted, iterated HMAC hashing for passwords and remember-me secrets.

Hashes are self-describing strings of the form::

    algorithm$salt$iterations$digest

so the hashing policy can change at any time: new hashes use the new
parameters while old ones still verify with the parameters they carry.
"""

import hashlib
import hmac
import secrets

from hubauth.domain.error import InvalidInputError

HASH_FIELD_SEPARATOR = "$"


def generate_hash(
    algorithm: str | None,
    salt: str | None,
    iterations: int | str | None,
    secret: str,
    max_iterations: int | None = None,
) -> str:
    """Hash a secret by iterating HMAC keyed with the salt.

    Round 1 hashes the raw secret; every later round hashes the hex digest of
    the previous one.

    Args:
        algorithm: hashlib algorithm name, e.g. "sha512"
        salt: HMAC key
        iterations: Number of rounds; anything below 1 counts as 1
        secret: Value to hash
        max_iterations: Refuse iteration counts above this, if given

    Returns:
        "algorithm$salt$iterations$digest"

    Raises:
        InvalidInputError: If algorithm or salt is missing, the algorithm is
            not usable with HMAC, or iterations is not an integer or exceeds
            max_iterations
    """
    if not algorithm or not salt:
        raise InvalidInputError(
            f"undefined arguments: algorithm='{algorithm}' salt='{salt}'"
        )
    if algorithm not in hashlib.algorithms_available:
        raise InvalidInputError(f"unsupported hash algorithm '{algorithm}'")
    try:
        rounds = int(iterations) if iterations not in (None, "") else 1
    except (TypeError, ValueError):
        raise InvalidInputError(f"iterations must be an integer, got '{iterations}'")
    rounds = max(rounds, 1)
    if max_iterations is not None and rounds > max_iterations:
        raise InvalidInputError(
            f"iterations {rounds} exceed the maximum of {max_iterations}"
        )

    key = salt.encode("utf-8")
    digest = secret
    try:
        for _ in range(rounds):
            digest = hmac.new(key, digest.encode("utf-8"), algorithm).hexdigest()
    except (TypeError, ValueError):
        # Variable-length digests such as shake_128 have no HMAC form
        raise InvalidInputError(
            f"hash algorithm '{algorithm}' cannot be used with HMAC"
        )

    return HASH_FIELD_SEPARATOR.join([algorithm, salt, str(rounds), digest])


def generate_salt(length: int) -> str:
    """Random salt of exactly `length` URL-safe characters (never "$")."""
    salt = ""
    while len(salt) < length:
        salt += secrets.token_urlsafe(length)
    return salt[:length]


def password_hash(
    password: str, algorithm: str, salt_length: int, iterations: int
) -> str:
    """Hash a password (or session secret) with a fresh salt.

    Args:
        password: Secret to hash
        algorithm: hashlib algorithm name
        salt_length: Salt length in characters
        iterations: Number of HMAC rounds

    Returns:
        Self-describing hash string
    """
    return generate_hash(algorithm, generate_salt(salt_length), iterations, password)


def verify_password(password: str, stored_hash: str | None) -> bool:
    """Check a password against a stored self-describing hash.

    Malformed or unusable stored hashes never match.
    """
    if not stored_hash:
        return False
    parts = stored_hash.split(HASH_FIELD_SEPARATOR)
    if len(parts) != 4:
        return False
    algorithm, salt, iterations, _ = parts
    try:
        expected = generate_hash(algorithm, salt, iterations, password)
    except InvalidInputError:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), stored_hash.encode("utf-8"))
