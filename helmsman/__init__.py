"""Helmsman: a small web server with hardened response headers."""
