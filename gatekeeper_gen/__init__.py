"""Gatekeeper resource generator package.

This package automatically loads environment variables from a ``.env``
file if present. Defaults for the command line such as
``GATEKEEPER_GEN_OUTPUT`` and ``GATEKEEPER_GEN_DRYRUN`` can therefore be
placed in that file for local development.
"""

from pathlib import Path

from dotenv import load_dotenv

__version__ = "0.3.0"

env_file = Path(__file__).resolve().parent.parent / ".env"
if env_file.exists():
    load_dotenv(dotenv_path=env_file)
