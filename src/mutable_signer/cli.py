# -*- encoding: utf-8 -*-
"""
Mutable Signer
mutable_signer.cli module

Command-line interface for mutable item signing.

Commands:
  mutable-signer keypair   — Generate an Ed25519 key pair
  mutable-signer salt      — Generate a random or seed-derived salt
  mutable-signer signable  — Print the payload that is signed for an item
  mutable-signer sign      — Sign an item value
  mutable-signer verify    — Verify an item signature
  mutable-signer serve     — Start the HTTP signing service
  mutable-signer info      — Show configuration
"""

import argparse
import json
import logging
import sys

from mutable_signer.keys import keypair, salt
from mutable_signer.payload import SignOptions, signable
from mutable_signer.service import (
    load_config,
    load_signing_keypair,
    parse_secret_key,
    run_service,
)
from mutable_signer.signing import sign, verify


def _value_bytes(args):
    if args.hex:
        return bytes.fromhex(args.value)
    return args.value.encode("utf-8")


def _salt_bytes(args):
    if args.salt is None:
        return None
    return bytes.fromhex(args.salt)


def cmd_keypair(args):
    """Generate a key pair and print it as JSON."""
    pair = keypair()
    print(json.dumps({
        "public_key": pair.public_key.hex(),
        "secret_key": pair.secret_key.hex(),
    }, indent=2))


def cmd_salt(args):
    """Print a salt as hex."""
    size = args.size if args.size is not None else args.config["SALT_SIZE"]
    if args.seed is not None:
        print(salt(args.seed, size).hex())
    else:
        print(salt(size).hex())


def cmd_signable(args):
    """Print the signable payload as hex."""
    options = SignOptions(seq=args.seq, salt=_salt_bytes(args))
    print(signable(_value_bytes(args), options).hex())


def cmd_sign(args):
    """Sign a value with --secret-key or SIGNER_SECRET_KEY."""
    if args.secret_key:
        pair = parse_secret_key(args.secret_key)
    else:
        pair = load_signing_keypair(args.config)
    options = SignOptions(seq=args.seq, salt=_salt_bytes(args), keypair=pair)
    signature = sign(_value_bytes(args), options)
    print(json.dumps({
        "signature": signature.hex(),
        "public_key": pair.public_key.hex(),
        "seq": args.seq,
        "salt": args.salt,
    }, indent=2))


def cmd_verify(args):
    """Verify a signature; exits 1 when it does not match."""
    options = SignOptions(seq=args.seq, salt=_salt_bytes(args))
    valid = verify(
        bytes.fromhex(args.signature),
        _value_bytes(args),
        options,
        public_key=bytes.fromhex(args.public_key),
    )
    print("valid" if valid else "invalid")
    if not valid:
        sys.exit(1)


def cmd_serve(args):
    """Start the HTTP signing service."""
    run_service(args.config)


def cmd_info(args):
    """Show configuration and the configured public key."""
    config = args.config
    pair = load_signing_keypair(config)

    print(f"Public key:  {pair.public_key.hex() if pair else '(no SIGNER_SECRET_KEY set)'}")
    print(f"Listen:      {config['SIGNER_HOST']}:{config['SIGNER_PORT']}")
    print(f"Salt size:   {config['SALT_SIZE']}")
    print(f"Log level:   {config['LOG_LEVEL']}")


def _add_item_arguments(parser):
    parser.add_argument("value", help="Item value (UTF-8 text, or hex with --hex)")
    parser.add_argument(
        "--hex", action="store_true", help="Treat VALUE as hex-encoded bytes"
    )
    parser.add_argument("--seq", type=int, default=0, help="Sequence number")
    parser.add_argument("--salt", help="Salt as hex")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="mutable-signer",
        description="Sign and verify BEP44 mutable DHT items",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    keypair_parser = subparsers.add_parser(
        "keypair", help="Generate an Ed25519 key pair"
    )
    keypair_parser.set_defaults(func=cmd_keypair)

    salt_parser = subparsers.add_parser(
        "salt", help="Generate a random or seed-derived salt"
    )
    salt_parser.add_argument("--seed", help="Derive the salt from this string")
    salt_parser.add_argument("--size", type=int, help="Salt size in bytes (16-64)")
    salt_parser.set_defaults(func=cmd_salt)

    signable_parser = subparsers.add_parser(
        "signable", help="Print the payload signed for an item"
    )
    _add_item_arguments(signable_parser)
    signable_parser.set_defaults(func=cmd_signable)

    sign_parser = subparsers.add_parser("sign", help="Sign an item value")
    _add_item_arguments(sign_parser)
    sign_parser.add_argument(
        "--secret-key", help="Hex secret key (defaults to SIGNER_SECRET_KEY)"
    )
    sign_parser.set_defaults(func=cmd_sign)

    verify_parser = subparsers.add_parser("verify", help="Verify an item signature")
    verify_parser.add_argument("signature", help="Signature as hex")
    _add_item_arguments(verify_parser)
    verify_parser.add_argument(
        "--public-key", required=True, help="Signer public key as hex"
    )
    verify_parser.set_defaults(func=cmd_verify)

    serve_parser = subparsers.add_parser(
        "serve", help="Start the HTTP signing service"
    )
    serve_parser.set_defaults(func=cmd_serve)

    info_parser = subparsers.add_parser("info", help="Show configuration")
    info_parser.set_defaults(func=cmd_info)

    return parser


def main(argv=None):
    """Entry point for the mutable-signer CLI."""
    args = build_parser().parse_args(argv)
    args.config = load_config()
    logging.basicConfig(
        level=args.config["LOG_LEVEL"],
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        args.func(args)
    except (TypeError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
