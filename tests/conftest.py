# -*- encoding: utf-8 -*-
"""
Mutable Signer Test Configuration

Shared pytest fixtures for the mutable signer test suite.

Every fixture uses real primitives:
- PyNaCl for Ed25519 keys and BLAKE2b
- bencode.py (bencodepy) as the reference bencoder

No mocks, no stubs.
"""

import pytest

from mutable_signer.keys import KeyPair, keypair, salt

# Fixed Ed25519 seed so payload/signature tests are repeatable.
SEED_0 = (
    b'\x9f{\xa8\xa7\xa8C9\x96&\xfa\xb1\x99\xeb\xaa '
    b'\xc4\x1bG\x11\xc4\xaeSAR\xc9\xbd\x04\x9d\x85)~\x93'
)


@pytest.fixture
def pair():
    """A fresh random key pair."""
    return keypair()


@pytest.fixture
def seeded_pair():
    """The key pair derived from SEED_0."""
    return KeyPair.from_seed(SEED_0)


@pytest.fixture
def random_salt():
    """A fresh 32-byte random salt."""
    return salt()
