"""Random value generators for identifiers and tokens."""

import base64
import secrets
import uuid as _uuid

# German passport ID alphabet: no 0/O, 1/I or similar look-alikes
UNAMBIGUOUS_ALPHABET = "0123456789CFGHJKLMNPRTVWXYZ"


def uuid() -> str:
    """Generate a UUID v4 string."""
    return str(_uuid.uuid4())


def url_token(nbytes: int = 16) -> str:
    """Generate a random token suitable for inclusion in URLs.

    The token is urlsafe base64 of ``nbytes`` random bytes, with padding.
    """
    return base64.urlsafe_b64encode(secrets.token_bytes(nbytes)).decode("ascii")


def unambiguous_human_token(length: int = 6) -> str:
    """Generate a token that people can read out and type without ambiguity."""
    return "".join(secrets.choice(UNAMBIGUOUS_ALPHABET) for _ in range(length))
