"""
A simple CLI for running the bridge.
"""

import os
import sys

import uvicorn


def run_server(**kwargs):
    for k, v in kwargs.items():
        os.environ[k] = v

    uvicorn.run("oauthbridge.api.app:app", host="0.0.0.0")


def main():
    try:
        run = sys.argv[1] == "run"
        setup = sys.argv[1] == "setup"
        dev = run and sys.argv[2] == "dev"
        prod = run and sys.argv[2] == "prod"
    except IndexError:
        print(
            "Only supported commands are oauthbridge run dev, oauthbridge run prod, "
            "or oauthbridge setup"
        )
        exit(1)

    if dev:
        # Self-contained: local SQLite file and the mock identity backend,
        # which logs everyone in immediately.
        environment = {
            "OAUTHBRIDGE_DATABASE_TYPE": "sqlite",
            "OAUTHBRIDGE_DATABASE_DB": os.environ.get(
                "OAUTHBRIDGE_DATABASE_DB", "oauthbridge-dev.db"
            ),
            "OAUTHBRIDGE_CREATE_TABLES": "True",
            "OAUTHBRIDGE_IDENTITY_BACKEND": "mock",
        }

        run_server(**environment)

    if prod:
        from oauthbridge.config.settings import Settings

        Settings().sync_manager().create_all()

        run_server()

    if setup:
        from oauthbridge.config.settings import Settings

        Settings().sync_manager().create_all()

        print("Setup complete, token table created")
        exit(0)

    if not (dev or prod or setup):
        print(f"Unknown command: {' '.join(sys.argv[1:])}")
        exit(1)
