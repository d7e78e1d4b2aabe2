"""Root conftest: loads .env.test before any support_chat module reads settings."""
from __future__ import annotations

import os
from pathlib import Path

_env_test = Path(__file__).resolve().parent / ".env.test"
if _env_test.exists():
    for line in _env_test.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        os.environ.setdefault(key.strip(), value.strip())

# Settings requires these; tests never open a real connection
for _key, _value in (
    ("POSTGRES_USER", "chat"),
    ("POSTGRES_PASSWORD", "chat"),
    ("POSTGRES_DB", "support_chat_test"),
    ("JWT_SECRET", "test-secret-with-enough-length-for-hs256"),
):
    os.environ.setdefault(_key, _value)
