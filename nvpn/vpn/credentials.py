"""TOTP-based password generation."""

import binascii
import time
from typing import Optional, Union

import pyotp

from .exceptions import CredentialError


def normalize_secret(secret: str) -> str:
    return secret.strip().replace(" ", "").upper()


def generate_totp(secret: str, for_time: Optional[Union[int, float]] = None) -> str:
    """Generate the TOTP code for a base32 secret.

    Args:
        secret: Base32-encoded TOTP secret
        for_time: Unix timestamp, defaults to now

    Returns:
        6-digit TOTP code

    Raises:
        CredentialError: If the secret is empty or not valid base32
    """
    secret = normalize_secret(secret or "")
    if not secret:
        raise CredentialError("TOTP secret is empty")
    if for_time is None:
        for_time = time.time()
    try:
        return pyotp.TOTP(secret).at(int(for_time))
    except (binascii.Error, ValueError, TypeError) as e:
        raise CredentialError(f"Invalid TOTP secret: {e}") from e


def combine_password(secret_base32: str, password_static_part: str,
                     for_time: Optional[Union[int, float]] = None) -> str:
    """Return the static password part followed by the current TOTP code."""
    return f"{password_static_part}{generate_totp(secret_base32, for_time)}"


def validate_secret(secret: str) -> bool:
    """Check if TOTP secret is valid."""
    try:
        generate_totp(secret)
        return True
    except CredentialError:
        return False
