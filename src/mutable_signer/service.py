# -*- encoding: utf-8 -*-
"""
Mutable Signer
mutable_signer.service module

Configuration and the HTTP signing service.

Configuration is loaded from environment variables with sensible defaults.
The service serves the falcon app from http_server with wsgiref in a
background thread until interrupted.
"""

import logging
import os
import threading

from mutable_signer.http_server import create_app
from mutable_signer.keys import SECRET_KEY_SIZE, SEED_SIZE, KeyPair

logger = logging.getLogger("mutable_signer")

# Default configuration values
DEFAULTS = {
    "SIGNER_SECRET_KEY": "",
    "SIGNER_HOST": "127.0.0.1",
    "SIGNER_PORT": "5690",
    "SALT_SIZE": "32",
    "LOG_LEVEL": "INFO",
}


def load_config(environ=None):
    """Load service configuration from environment variables.

    Args:
        environ: mapping to read instead of os.environ.

    Returns:
        dict with all configuration values.
    """
    if environ is None:
        environ = os.environ
    config = {}
    for key, default in DEFAULTS.items():
        config[key] = environ.get(key, default)
    # Parse numeric values
    config["SIGNER_PORT"] = int(config["SIGNER_PORT"])
    config["SALT_SIZE"] = int(config["SALT_SIZE"])
    config["LOG_LEVEL"] = config["LOG_LEVEL"].upper()
    return config


def parse_secret_key(secret_hex):
    """Build a KeyPair from a hex 64-byte secret key or 32-byte seed."""
    try:
        raw = bytes.fromhex(secret_hex.strip())
    except ValueError:
        raise ValueError("secret key is not valid hex") from None
    if len(raw) == SEED_SIZE:
        return KeyPair.from_seed(raw)
    if len(raw) == SECRET_KEY_SIZE:
        return KeyPair.from_secret_key(raw)
    raise ValueError(
        f"secret key must be {SEED_SIZE} or {SECRET_KEY_SIZE} bytes, got {len(raw)}"
    )


def load_signing_keypair(config):
    """Return the configured KeyPair, or None when SIGNER_SECRET_KEY is unset."""
    secret_hex = config["SIGNER_SECRET_KEY"]
    if not secret_hex:
        return None
    return parse_secret_key(secret_hex)


def build_service(config=None):
    """Wire together the signing service components.

    Returns:
        dict with keys: app, keypair, config
    """
    if config is None:
        config = load_config()

    keypair = load_signing_keypair(config)
    if keypair is None:
        logger.warning("SIGNER_SECRET_KEY not set, POST /sign is disabled")

    app = create_app(keypair=keypair, salt_size=config["SALT_SIZE"])
    return {"app": app, "keypair": keypair, "config": config}


class ServiceLoop:
    """Serves the falcon WSGI app from a background thread until stopped."""

    def __init__(self, service):
        self.service = service
        self.config = service["config"]
        self._stop_event = threading.Event()
        self._http_thread = None
        self._httpd = None

    @property
    def server_address(self):
        """(host, port) the HTTP server is bound to, or None before start()."""
        if self._httpd is None:
            return None
        return self._httpd.server_address

    def _make_server(self):
        from wsgiref.simple_server import make_server, WSGIRequestHandler

        class QuietHandler(WSGIRequestHandler):
            def log_request(self, code="-", size="-"):
                pass  # Suppress per-request logging

        return make_server(self.config["SIGNER_HOST"], self.config["SIGNER_PORT"],
                           self.service["app"], handler_class=QuietHandler)

    def start(self):
        """Start the HTTP server thread and block until stop() is called."""
        self._httpd = self._make_server()
        self._http_thread = threading.Thread(
            target=self._httpd.serve_forever, daemon=True
        )
        self._http_thread.start()

        host, port = self._httpd.server_address[:2]
        keypair = self.service["keypair"]
        logger.info(
            "HTTP server listening on %s:%d (public key: %s)",
            host, port,
            keypair.public_key.hex() if keypair is not None else "none",
        )

        try:
            self._stop_event.wait()
        except KeyboardInterrupt:
            logger.info("Shutting down...")
        finally:
            self._httpd.shutdown()
            self._httpd.server_close()
            self._http_thread.join()

    def stop(self):
        """Signal start() to shut the HTTP server down and return."""
        self._stop_event.set()


def run_service(config=None):
    """Build and run the signing service (blocking)."""
    service = build_service(config=config)
    loop = ServiceLoop(service)
    loop.start()
