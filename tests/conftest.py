"""Pytest configuration.

The application code lives in the top-level `expense_engine/` package.
Depending on how pytest is invoked the repository root may not be on
`sys.path`, which breaks imports like `from expense_engine.modules...`, so it
is added explicitly during collection.

The fixtures below build Gmail API message dictionaries the same way the
mailbox client delivers them: URL-safe base64 body data with the padding
stripped.
"""

from __future__ import annotations

import base64
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]

# NOTE: Insert at the front so local imports win over any similarly named
# third-party packages.
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# 2024-05-01T08:00:00Z
DEFAULT_INTERNAL_DATE_MS = 1714550400000


def encode_body(text: str) -> str:
    """Encode text the way Gmail does for ``body.data``."""
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def build_part(mime_type: str, text=None, parts=None) -> dict:
    part = {"mimeType": mime_type, "body": {}}
    if text is not None:
        part["body"]["data"] = encode_body(text)
    if parts is not None:
        part["parts"] = parts
    return part


def build_message(
    subject: str = "",
    body=None,
    sender: str = "HDFC Bank InstaAlerts <alerts@hdfcbank.com>",
    parts=None,
    internal_date_ms=DEFAULT_INTERNAL_DATE_MS,
    message_id: str = "msg-1",
    thread_id: str = "thread-1",
    mime_type: str = "text/plain",
) -> dict:
    payload = {
        "mimeType": mime_type if parts is None else "multipart/alternative",
        "headers": [
            {"name": "Subject", "value": subject},
            {"name": "From", "value": sender},
        ],
        "body": {},
    }
    if body is not None:
        payload["body"]["data"] = encode_body(body)
    if parts is not None:
        payload["parts"] = parts
    return {
        "id": message_id,
        "threadId": thread_id,
        "internalDate": str(internal_date_ms),
        "payload": payload,
    }


@pytest.fixture
def make_message():
    return build_message


@pytest.fixture
def make_part():
    return build_part
