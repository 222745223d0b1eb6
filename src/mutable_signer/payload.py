# -*- encoding: utf-8 -*-
"""
Mutable Signer
mutable_signer.payload module

Signable payload construction for BEP44-style mutable DHT items.

The payload is the inner content of the bencoded dictionary
{salt?, seq, v}, i.e. the dictionary encoding without its leading "d"
and trailing "e". Keys are emitted in sorted order and salt is left out
entirely when absent, so the output is byte-identical to what any
compliant bencoder produces for the same dictionary.

Reference:
  - BEP 44 (Storing arbitrary data in the DHT), "mutable items"
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

MAX_VALUE_SIZE = 1000  # bytes, BEP44 limit on the bencoded "v" field
MIN_SALT_SIZE = 16
MAX_SALT_SIZE = 64
DEFAULT_SEQ = 0
MIN_SEQ = -(2 ** 63)  # seq is a signed 64-bit integer in DHT implementations
MAX_SEQ = 2 ** 63 - 1

BUFFER_TYPES = (bytes, bytearray, memoryview)


@dataclass(frozen=True)
class SignOptions:
    """Optional fields of a mutable item signature.

    keypair is only read by sign(); signable() ignores it.
    """

    seq: int = DEFAULT_SEQ
    salt: Optional[bytes] = None
    keypair: Optional[object] = None

    @classmethod
    def coerce(cls, options):
        """Return options as a SignOptions.

        Accepts None (all defaults), a SignOptions, or a mapping with any of
        the keys seq, salt and keypair. Values are passed through unchecked;
        validation happens in signable() and sign().
        """
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if not isinstance(options, Mapping):
            raise TypeError("options must be a mapping")
        seq = options.get("seq")
        return cls(
            seq=DEFAULT_SEQ if seq is None else seq,
            salt=options.get("salt"),
            keypair=options.get("keypair"),
        )


def is_buffer(obj):
    """True for bytes-like objects (bytes, bytearray, memoryview)."""
    return isinstance(obj, BUFFER_TYPES)


def byte_length(buf):
    """Size of a bytes-like object in bytes, not in items."""
    return memoryview(buf).nbytes


def check_value(value):
    if not is_buffer(value):
        raise TypeError("Value must be a buffer")
    if byte_length(value) > MAX_VALUE_SIZE:
        raise ValueError(f"Value size must be <= {MAX_VALUE_SIZE}")


def check_salt_type(salt):
    if not is_buffer(salt):
        raise TypeError("salt must be a buffer")


def check_seq(seq):
    # bool is an int subclass but "i1e" for True would be a silent coercion
    if isinstance(seq, bool) or not isinstance(seq, int):
        raise TypeError("seq must be an integer")
    if not MIN_SEQ <= seq <= MAX_SEQ:
        raise ValueError("seq must fit in a signed 64-bit integer")


def encode_bytes(data) -> bytes:
    """Bencode a byte string as <length>:<bytes>."""
    data = bytes(data)
    return str(len(data)).encode("ascii") + b":" + data


def encode_int(number: int) -> bytes:
    """Bencode an integer as i<number>e."""
    return b"i" + str(number).encode("ascii") + b"e"


def encode_fields(value, seq=DEFAULT_SEQ, salt=None) -> bytes:
    """Encode the {salt?, seq, v} key/value pairs in sorted key order.

    No validation is done here; see signable().
    """
    parts = []
    if salt is not None:
        parts.append(encode_bytes(b"salt") + encode_bytes(salt))
    parts.append(encode_bytes(b"seq") + encode_int(seq))
    parts.append(encode_bytes(b"v") + encode_bytes(value))
    return b"".join(parts)


def signable(value, options=None) -> bytes:
    """Build the byte string that is signed for a mutable item.

    Args:
        value: bytes-like value, at most MAX_VALUE_SIZE bytes.
        options: SignOptions or mapping with optional seq (default 0) and
                 salt (bytes-like, at most MAX_SALT_SIZE bytes).

    Returns:
        The bencoded {salt?, seq, v} dictionary without its outer "d"/"e".

    Raises:
        TypeError: value or salt is not bytes-like, or seq is not an int.
        ValueError: value or salt is too large, or seq is out of range.
    """
    options = SignOptions.coerce(options)
    check_value(value)

    salt = options.salt
    if salt is not None:
        check_salt_type(salt)
        if byte_length(salt) > MAX_SALT_SIZE:
            raise ValueError(
                f"salt size must be no greater than {MAX_SALT_SIZE} bytes"
            )
    check_seq(options.seq)

    payload = encode_fields(value, seq=options.seq, salt=salt)
    logger.debug(
        "Built signable payload: %d bytes (seq=%d, salted=%s)",
        len(payload), options.seq, salt is not None,
    )
    return payload
