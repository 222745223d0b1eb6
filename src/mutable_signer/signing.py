# -*- encoding: utf-8 -*-
"""
Mutable Signer
mutable_signer.signing module

Ed25519 signatures over mutable item payloads.

sign() validates the item fields, builds the payload with signable() and
signs it; crypto_sign() signs an already-built payload. verify() and
crypto_verify() are the matching checks a DHT node runs before storing a
mutable item.
"""

import logging

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from mutable_signer.keys import PUBLIC_KEY_SIZE, SEED_SIZE, KeyPair
from mutable_signer.payload import (
    MAX_SALT_SIZE,
    MIN_SALT_SIZE,
    SignOptions,
    byte_length,
    check_salt_type,
    check_value,
    is_buffer,
    signable,
)

logger = logging.getLogger(__name__)

SIGNATURE_SIZE = 64


def _keypair_field(keypair, name):
    """Read a KeyPair attribute, or the same key from a mapping."""
    if isinstance(keypair, dict):
        return keypair.get(name)
    return getattr(keypair, name, None)


def _secret_key(keypair):
    if keypair is None:
        raise ValueError("keypair is required")
    secret_key = _keypair_field(keypair, "secret_key")
    if secret_key is None or not is_buffer(secret_key):
        raise ValueError("keypair.secretKey is required")
    return KeyPair.from_secret_key(secret_key).secret_key


def _ed25519_sign(secret_key, message):
    # libsodium secret keys carry the seed in their first half
    signing_key = SigningKey(secret_key[:SEED_SIZE])
    return signing_key.sign(bytes(message)).signature


def sign(value, options=None) -> bytes:
    """Sign a mutable item value.

    Args:
        value: bytes-like value, at most 1000 bytes.
        options: SignOptions or mapping with keypair (required), seq and salt.
                 A salt given here must be 16 to 64 bytes long.

    Returns:
        64-byte Ed25519 signature over signable(value, options).

    Raises:
        TypeError: value or salt is not bytes-like.
        ValueError: options, keypair or its secret key is missing, or a
                    size limit is exceeded.
    """
    if options is None:
        raise ValueError("Options are required")
    options = SignOptions.coerce(options)

    salt = options.salt
    if salt is not None:
        check_salt_type(salt)
        if not MIN_SALT_SIZE <= byte_length(salt) <= MAX_SALT_SIZE:
            raise ValueError(
                f"salt size must be between {MIN_SALT_SIZE} and "
                f"{MAX_SALT_SIZE} bytes (inclusive)"
            )
    check_value(value)
    secret_key = _secret_key(options.keypair)

    payload = signable(value, options)
    signature = _ed25519_sign(secret_key, payload)
    logger.debug("Signed mutable item (seq=%d, salted=%s)", options.seq, salt is not None)
    return signature


def crypto_sign(msg, keypair) -> bytes:
    """Sign a raw message, normally a payload built by signable().

    No size limit is applied to msg.
    """
    if not is_buffer(msg):
        raise TypeError("msg must be a buffer")
    secret_key = _secret_key(keypair)
    return _ed25519_sign(secret_key, msg)


def crypto_verify(signature, msg, public_key) -> bool:
    """Check an Ed25519 signature over a raw message.

    Returns:
        True if the signature is valid for msg under public_key.

    Raises:
        TypeError: msg is not bytes-like.
        ValueError: signature or public_key has the wrong size.
    """
    if not is_buffer(msg):
        raise TypeError("msg must be a buffer")
    if not is_buffer(signature) or byte_length(signature) != SIGNATURE_SIZE:
        raise ValueError(f"signature must be {SIGNATURE_SIZE} bytes")
    if not is_buffer(public_key) or byte_length(public_key) != PUBLIC_KEY_SIZE:
        raise ValueError(f"public key must be {PUBLIC_KEY_SIZE} bytes")

    try:
        VerifyKey(bytes(public_key)).verify(bytes(msg), bytes(signature))
    except BadSignatureError:
        logger.debug("Signature check failed for %d-byte message", byte_length(msg))
        return False
    return True


def verify(signature, value, options=None, public_key=None) -> bool:
    """Check a mutable item signature.

    The payload is rebuilt from value, seq and salt with signable() rules.
    The public key is taken from public_key, or else from options.keypair.

    Returns:
        True if signature was made over the item by the public key's owner.
    """
    options = SignOptions.coerce(options)
    if public_key is None and options.keypair is not None:
        public_key = _keypair_field(options.keypair, "public_key")
    if public_key is None:
        raise ValueError("public key is required")
    payload = signable(value, options)
    return crypto_verify(signature, payload, public_key)
