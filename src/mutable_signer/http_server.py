# -*- encoding: utf-8 -*-
"""
Mutable Signer
mutable_signer.http_server module

HTTP endpoints for building, signing and verifying mutable item payloads.

Uses falcon (WSGI). Binary fields travel as lowercase hex strings in JSON
bodies. Input errors from the library (TypeError/ValueError) are returned
as 400 responses carrying the error message. Signing uses the key pair
the service was configured with; without one, POST /sign answers 503.
"""

import logging

import falcon

from mutable_signer.keys import DEFAULT_SALT_SIZE, salt
from mutable_signer.payload import SignOptions, signable
from mutable_signer.signing import sign, verify

logger = logging.getLogger(__name__)


def _hex_field(body, name, required=False):
    """Decode a hex string field of a JSON body, or None if absent."""
    raw = body.get(name)
    if raw is None:
        if required:
            raise ValueError(f"{name} is required")
        return None
    if not isinstance(raw, str):
        raise TypeError(f"{name} must be a hex string")
    try:
        return bytes.fromhex(raw)
    except ValueError:
        raise ValueError(f"{name} is not valid hex") from None


def _item_options(body, keypair=None):
    seq = body.get("seq")
    return SignOptions(
        seq=0 if seq is None else seq,
        salt=_hex_field(body, "salt"),
        keypair=keypair,
    )


def _json_body(req):
    body = req.get_media()
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


def _bad_request(resp, exc):
    resp.status = falcon.HTTP_400
    resp.content_type = falcon.MEDIA_TEXT
    resp.text = str(exc)


class SignableResource:
    """POST /signable: {value, seq?, salt?} -> {payload}."""

    def on_post(self, req, resp):
        try:
            body = _json_body(req)
            value = _hex_field(body, "value", required=True)
            payload = signable(value, _item_options(body))
        except (TypeError, ValueError) as exc:
            _bad_request(resp, exc)
            return

        resp.status = falcon.HTTP_200
        resp.media = {"payload": payload.hex()}


class SignResource:
    """POST /sign: signs {value, seq?, salt?} with the service key pair."""

    def __init__(self, keypair):
        self.keypair = keypair

    def on_post(self, req, resp):
        if self.keypair is None:
            resp.status = falcon.HTTP_503
            resp.content_type = falcon.MEDIA_TEXT
            resp.text = "No signing key configured"
            return

        try:
            body = _json_body(req)
            value = _hex_field(body, "value", required=True)
            options = _item_options(body, keypair=self.keypair)
            signature = sign(value, options)
        except (TypeError, ValueError) as exc:
            _bad_request(resp, exc)
            return

        logger.info("Signed mutable item seq=%d", options.seq)
        resp.status = falcon.HTTP_200
        resp.media = {
            "signature": signature.hex(),
            "public_key": self.keypair.public_key.hex(),
            "seq": options.seq,
            "salt": options.salt.hex() if options.salt is not None else None,
        }


class VerifyResource:
    """POST /verify: {signature, value, public_key, seq?, salt?} -> {valid}."""

    def on_post(self, req, resp):
        try:
            body = _json_body(req)
            signature = _hex_field(body, "signature", required=True)
            value = _hex_field(body, "value", required=True)
            public_key = _hex_field(body, "public_key", required=True)
            valid = verify(signature, value, _item_options(body), public_key=public_key)
        except (TypeError, ValueError) as exc:
            _bad_request(resp, exc)
            return

        resp.status = falcon.HTTP_200
        resp.media = {"valid": valid}


class SaltResource:
    """GET /salt?seed=...&size=...: random or seed-derived salt."""

    def __init__(self, salt_size=DEFAULT_SALT_SIZE):
        self.salt_size = salt_size

    def on_get(self, req, resp):
        seed = req.get_param("seed")
        size = req.get_param_as_int("size", default=self.salt_size)
        try:
            result = salt(seed, size) if seed is not None else salt(size)
        except (TypeError, ValueError) as exc:
            _bad_request(resp, exc)
            return

        resp.status = falcon.HTTP_200
        resp.media = {"salt": result.hex()}


class HealthResource:
    """Simple health check endpoint at GET /health."""

    def on_get(self, req, resp):
        resp.status = falcon.HTTP_200
        resp.content_type = falcon.MEDIA_JSON
        resp.media = {"status": "ok"}


def create_app(keypair=None, salt_size=DEFAULT_SALT_SIZE):
    """Create and return a falcon WSGI application.

    Args:
        keypair: KeyPair used by POST /sign, or None to disable signing.
        salt_size: default size for GET /salt.

    Returns:
        A falcon.App instance ready to be served.
    """
    app = falcon.App()
    app.add_route("/signable", SignableResource())
    app.add_route("/sign", SignResource(keypair))
    app.add_route("/verify", VerifyResource())
    app.add_route("/salt", SaltResource(salt_size))
    app.add_route("/health", HealthResource())
    return app
