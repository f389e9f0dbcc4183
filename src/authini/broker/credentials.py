"""Opaque credential generation.

Codes, client secrets and tokens are fixed-length strings drawn uniformly from
[A-Za-z0-9] using the operating system's cryptographically secure source.
"""
import secrets
import string

CREDENTIAL_ALPHABET = string.ascii_letters + string.digits

DEFAULT_CODE_LENGTH = 32
DEFAULT_SECRET_LENGTH = 64
DEFAULT_TOKEN_LENGTH = 255


def generate_credential(length: int) -> str:
    if length <= 0:
        raise ValueError("credential length must be positive")
    return "".join(secrets.choice(CREDENTIAL_ALPHABET) for _ in range(length))


def generate_code(length: int = DEFAULT_CODE_LENGTH) -> str:
    return generate_credential(length)


def generate_secret(length: int = DEFAULT_SECRET_LENGTH) -> str:
    return generate_credential(length)


def generate_token(length: int = DEFAULT_TOKEN_LENGTH) -> str:
    return generate_credential(length)
