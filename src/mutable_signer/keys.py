# -*- encoding: utf-8 -*-
"""
Mutable Signer
mutable_signer.keys module

Ed25519 key pairs and salts for mutable items.

Secret keys use the libsodium layout: 32-byte seed followed by the
32-byte public key, 64 bytes in total. Salts are either random or a
BLAKE2b digest (libsodium crypto_generichash) of a string seed, so the
same seed always names the same item under a given key.
"""

import logging
from dataclasses import dataclass

import nacl.encoding
import nacl.hash
import nacl.utils
from nacl.signing import SigningKey

from mutable_signer.payload import MAX_SALT_SIZE, MIN_SALT_SIZE, byte_length, is_buffer

logger = logging.getLogger(__name__)

PUBLIC_KEY_SIZE = 32
SEED_SIZE = 32
SECRET_KEY_SIZE = 64
DEFAULT_SALT_SIZE = 32


@dataclass(frozen=True)
class KeyPair:
    """Ed25519 key pair: 32-byte public key, 64-byte secret key."""

    public_key: bytes
    secret_key: bytes

    @classmethod
    def from_seed(cls, seed: bytes) -> "KeyPair":
        """Derive the key pair for a 32-byte Ed25519 seed."""
        signing_key = SigningKey(bytes(seed))
        public_key = bytes(signing_key.verify_key)
        return cls(public_key=public_key, secret_key=bytes(signing_key) + public_key)

    @classmethod
    def from_secret_key(cls, secret_key: bytes) -> "KeyPair":
        """Rebuild a key pair from a 64-byte secret key (seed || public key)."""
        if not is_buffer(secret_key) or byte_length(secret_key) != SECRET_KEY_SIZE:
            raise ValueError(f"keypair.secretKey must be {SECRET_KEY_SIZE} bytes")
        secret_key = bytes(secret_key)
        pair = cls.from_seed(secret_key[:SEED_SIZE])
        # libsodium signs with the stored public half, so both halves must agree
        if pair.secret_key != secret_key:
            raise ValueError("keypair.secretKey does not match its public key")
        return pair


def keypair() -> KeyPair:
    """Generate a fresh random Ed25519 key pair."""
    return KeyPair.from_seed(bytes(SigningKey.generate()))


def _check_salt_size(size):
    if isinstance(size, bool) or not isinstance(size, int):
        raise TypeError("salt size must be an integer")
    if not MIN_SALT_SIZE <= size <= MAX_SALT_SIZE:
        raise ValueError(
            f"salt size must be between {MIN_SALT_SIZE} and {MAX_SALT_SIZE} bytes (inclusive)"
        )


def salt(size_or_seed=None, size=None) -> bytes:
    """Return a salt for a mutable item.

    salt()              -> 32 random bytes
    salt(n)             -> n random bytes
    salt("seed")        -> 32-byte BLAKE2b digest of the UTF-8 seed
    salt("seed", n)     -> n-byte BLAKE2b digest of the UTF-8 seed

    n must be between MIN_SALT_SIZE and MAX_SALT_SIZE (inclusive).

    Raises:
        ValueError: n is out of range.
        TypeError: the first argument is neither an int nor a str.
    """
    if isinstance(size_or_seed, str):
        size = DEFAULT_SALT_SIZE if size is None else size
        _check_salt_size(size)
        return nacl.hash.blake2b(
            size_or_seed.encode("utf-8"),
            digest_size=size,
            encoder=nacl.encoding.RawEncoder,
        )

    if size_or_seed is None:
        size_or_seed = DEFAULT_SALT_SIZE if size is None else size
    elif isinstance(size_or_seed, bool) or not isinstance(size_or_seed, int):
        raise TypeError("salt argument must be a size or a string seed")
    _check_salt_size(size_or_seed)
    return nacl.utils.random(size_or_seed)
