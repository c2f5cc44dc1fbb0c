"""
Generate random tokens for the in-process identity backend.
"""

import secrets


def backend_code():
    return secrets.token_urlsafe(32)


def access_token():
    return secrets.token_urlsafe(48)


def refresh_token():
    return secrets.token_urlsafe(64)
