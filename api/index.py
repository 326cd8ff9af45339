"""Serverless entrypoint: Vercel imports this module and serves ``app``."""

from __future__ import annotations

import sys
from pathlib import Path

# The lexify package lives one directory up from this file.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from lexify.main import app  # noqa: E402,F401
