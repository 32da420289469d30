"""
Cryptographic helpers for Obscura Share.

Tokens are encrypted at rest with AES-256-GCM keyed directly by the host
secret. The stored form is the "triplet" encoding: IV, authentication tag and
ciphertext, each hex encoded and joined with a dot. Files written this way are
interchangeable with the desktop application's own share files.

The host secret is used as raw key material (first 64 hex characters decoded
to 32 bytes). No key-derivation function is applied, so rotating the secret
replaces the key wholesale and tokens written under the old secret can no
longer be opened.
"""

import hashlib
import hmac
import os
import re
import secrets
import time
from pathlib import Path
from typing import NamedTuple, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .core.logging import get_logger
from .errors import CryptoError, SecretValidationError


logger = get_logger(__name__)


TRIPLET_SEPARATOR = "."
IV_SIZE = 16
TAG_SIZE = 16
SECRET_BYTES = 32
SECRET_HEX_LENGTH = SECRET_BYTES * 2

# Clock skew tolerated between peers when checking token timestamps
TOKEN_CLOCK_SKEW_MS = 5 * 60 * 1000
USER_TOKEN_MAX_AGE_MS = 30 * 24 * 60 * 60 * 1000
ACCESS_TOKEN_MAX_AGE_MS = 90 * 24 * 60 * 60 * 1000

_HEX_RE = re.compile(r'^[0-9a-fA-F]+$')
_PLAIN_USER_TOKEN_RE = re.compile(r'^[0-9a-fA-F]{32,64}$')
_PLAIN_ACCESS_TOKEN_RE = re.compile(r'^[0-9a-fA-F]{64}$')

_MACHINE_ID_FILES = (
    Path("/etc/machine-id"),
    Path("/var/lib/dbus/machine-id"),
)


class TokenCheck(NamedTuple):
    """Result of a token format check."""
    valid: bool
    timestamp: Optional[int] = None
    user_id: Optional[str] = None


def generate_host_secret() -> str:
    """Generate a new random 32-byte host secret, hex encoded."""
    return secrets.token_hex(SECRET_BYTES)


def is_strong_secret(secret: Optional[str]) -> bool:
    """
    Check whether a host secret can key AES-256.

    The secret must hold at least 64 hex characters; anything past the
    first 64 is ignored when deriving the key.
    """
    if not secret or not isinstance(secret, str) or len(secret) < SECRET_HEX_LENGTH:
        return False
    return bool(_HEX_RE.match(secret[:SECRET_HEX_LENGTH]))


def _key_from_secret(host_secret: str) -> bytes:
    if not is_strong_secret(host_secret):
        raise SecretValidationError(
            f"Host secret must contain at least {SECRET_HEX_LENGTH} hex characters"
        )
    return bytes.fromhex(host_secret[:SECRET_HEX_LENGTH])


def is_triplet(value: object) -> bool:
    """Check whether a stored value has the shape of an encrypted triplet."""
    if not value or not isinstance(value, str):
        return False
    parts = value.split(TRIPLET_SEPARATOR)
    return len(parts) == 3 and all(_HEX_RE.match(part) for part in parts)


def encrypt(plaintext: str, host_secret: str) -> str:
    """
    Encrypt a string with AES-256-GCM.

    A fresh IV is generated for every call, so encrypting the same value
    twice yields different triplets.

    Args:
        plaintext: The value to protect
        host_secret: Hex host secret (at least 64 characters)

    Returns:
        Triplet string ``iv.tag.ciphertext``

    Raises:
        SecretValidationError: If the host secret is too weak to use
    """
    key = _key_from_secret(host_secret)
    iv = os.urandom(IV_SIZE)
    sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    return TRIPLET_SEPARATOR.join((iv.hex(), tag.hex(), ciphertext.hex()))


def _split_triplet(triplet: str) -> tuple[bytes, bytes, bytes]:
    parts = triplet.split(TRIPLET_SEPARATOR)
    if len(parts) != 3:
        raise CryptoError("Encrypted value must have three segments")
    try:
        iv, tag, ciphertext = (bytes.fromhex(part) for part in parts)
    except ValueError as e:
        raise CryptoError("Encrypted value is not hex encoded") from e
    if len(tag) != TAG_SIZE:
        raise CryptoError("Authentication tag has the wrong length")
    return iv, tag, ciphertext


def decrypt(triplet: str, host_secret: str) -> Optional[str]:
    """
    Decrypt a triplet produced by :func:`encrypt`.

    Returns None on any failure: wrong key, tampered data, malformed input
    or an unusable secret. Never raises.
    """
    try:
        iv, tag, ciphertext = _split_triplet(triplet)
        key = _key_from_secret(host_secret)
        plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, None)
        return plaintext.decode("utf-8")
    except (CryptoError, SecretValidationError, InvalidTag, ValueError, TypeError, AttributeError) as e:
        logger.debug("Decryption failed", error=type(e).__name__)
        return None


def get_hardware_id() -> str:
    """
    Get a stable identifier for this machine.

    The machine id is hashed with SHA-256 so the raw value never leaves
    the host. Falls back to a random id when none can be read.
    """
    for path in _MACHINE_ID_FILES:
        try:
            machine_id = path.read_text().strip()
        except OSError:
            continue
        if machine_id:
            return hashlib.sha256(machine_id.encode()).hexdigest()

    logger.warning("Machine id unavailable, using a random hardware id")
    return secrets.token_hex(32)


def generate_user_token(hardware_id: str) -> str:
    """
    Generate the token a client presents as its identity.

    Format: ``timestamp.salt.hmac`` where the HMAC-SHA256 is keyed by the
    hardware id over the timestamp and salt.
    """
    timestamp = str(int(time.time() * 1000))
    salt = secrets.token_hex(16)
    digest = hmac.new(hardware_id.encode(), (timestamp + salt).encode(), hashlib.sha256).hexdigest()
    return f"{timestamp}.{salt}.{digest}"


def generate_access_token() -> str:
    """Generate an access token issued by the host at enrollment."""
    return secrets.token_hex(32)


def _check_timestamp(timestamp_str: str, max_age_ms: int) -> Optional[int]:
    try:
        timestamp = int(timestamp_str)
    except ValueError:
        return None

    now = int(time.time() * 1000)
    if timestamp > now + TOKEN_CLOCK_SKEW_MS:
        return None
    if now - timestamp > max_age_ms:
        return None
    return timestamp


def validate_user_token(token: Optional[str]) -> TokenCheck:
    """
    Check a user token's format and age.

    Accepts plain hex (32-64 characters) or ``timestamp.salt.hmac`` no older
    than 30 days.
    """
    if not token or not isinstance(token, str):
        return TokenCheck(False)

    parts = token.split(".")
    if len(parts) == 1 and _PLAIN_USER_TOKEN_RE.match(token):
        return TokenCheck(True)
    if len(parts) != 3:
        return TokenCheck(False)

    timestamp = _check_timestamp(parts[0], USER_TOKEN_MAX_AGE_MS)
    if timestamp is None:
        return TokenCheck(False)
    return TokenCheck(True, timestamp=timestamp)


def validate_access_token(token: Optional[str]) -> TokenCheck:
    """
    Check an access token's format and age.

    Accepts plain hex (64 characters) or ``user_id.timestamp.hmac`` no older
    than 90 days.
    """
    if not token or not isinstance(token, str):
        return TokenCheck(False)

    parts = token.split(".")
    if len(parts) == 1 and _PLAIN_ACCESS_TOKEN_RE.match(token):
        return TokenCheck(True)
    if len(parts) != 3:
        return TokenCheck(False)

    user_id, timestamp_str, _ = parts
    timestamp = _check_timestamp(timestamp_str, ACCESS_TOKEN_MAX_AGE_MS)
    if timestamp is None:
        return TokenCheck(False)
    return TokenCheck(True, timestamp=timestamp, user_id=user_id)
