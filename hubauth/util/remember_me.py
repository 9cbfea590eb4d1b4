"""Remember-me cookie codec.

The cookie value is ``algorithm$salt$iterations$session_secret``. The server
only keeps the hash of the session secret, computed with the first three
fields as hash parameters, so a leaked database row cannot be replayed as a
cookie.
"""

import uuid

from pydantic import BaseModel

from hubauth.domain.error import MalformedTokenError
from hubauth.util.hashing import HASH_FIELD_SEPARATOR, generate_hash, password_hash

TOKEN_FIELD_COUNT = 4


class RememberMeToken(BaseModel):
    """Decoded remember-me cookie."""

    algorithm: str
    salt: str
    iterations: str
    session_secret: str

    def record_hash(self, max_iterations: int | None = None) -> str:
        """Hash under which the server stores this session.

        Args:
            max_iterations: Highest iteration count the caller will compute

        Raises:
            InvalidInputError: If the hash parameters are unusable
        """
        return generate_hash(
            self.algorithm,
            self.salt,
            self.iterations,
            self.session_secret,
            max_iterations=max_iterations,
        )


def encode_token(
    algorithm: str, salt: str, iterations: int | str, session_secret: str
) -> str:
    """Join the four token fields into a cookie value."""
    return HASH_FIELD_SEPARATOR.join([algorithm, salt, str(iterations), session_secret])


def decode_token(value: str) -> RememberMeToken:
    """Split a cookie value into its four fields.

    Raises:
        MalformedTokenError: If the value does not have exactly four fields
    """
    fields = value.split(HASH_FIELD_SEPARATOR)
    if len(fields) != TOKEN_FIELD_COUNT:
        raise MalformedTokenError(len(fields))
    algorithm, salt, iterations, session_secret = fields
    return RememberMeToken(
        algorithm=algorithm,
        salt=salt,
        iterations=iterations,
        session_secret=session_secret,
    )


def create_session_token(
    algorithm: str, salt_length: int, iterations: int
) -> tuple[str, str]:
    """Mint a new session secret.

    Returns:
        Tuple of (cookie_value, record_hash)
    """
    session_secret = str(uuid.uuid4())
    hashed = password_hash(session_secret, algorithm, salt_length, iterations)
    algorithm_field, salt, iterations_field, _ = hashed.split(HASH_FIELD_SEPARATOR)
    cookie_value = encode_token(algorithm_field, salt, iterations_field, session_secret)
    return cookie_value, hashed
