"""
Raw Message Model
Read-only view of a Gmail API message as delivered by the mailbox collaborator

The shape mirrors ``users.messages.get(format="full")``: a header list, an
``internalDate`` in epoch milliseconds, and a ``payload`` tree whose nodes
carry an optional MIME type, optional URL-safe base64 body data and optional
child parts.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

DEFAULT_MAX_PART_DEPTH = 32

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessagePart:
    """One node of the payload tree"""
    mime_type: Optional[str] = None
    body_data: Optional[str] = None
    parts: Tuple["MessagePart", ...] = ()

    @classmethod
    def from_dict(
        cls,
        data: Optional[Mapping[str, Any]],
        max_depth: int = DEFAULT_MAX_PART_DEPTH,
        _depth: int = 0,
    ) -> "MessagePart":
        """
        Build a part tree from a Gmail API payload dictionary.

        Missing keys become empty values.  Children below ``max_depth`` are
        dropped so a pathological tree cannot exhaust the interpreter stack.
        """
        if not isinstance(data, Mapping):
            return cls()

        body = data.get("body")
        body_data = body.get("data") if isinstance(body, Mapping) else None

        raw_parts = data.get("parts")
        parts: Tuple[MessagePart, ...] = ()
        if isinstance(raw_parts, (list, tuple)) and raw_parts:
            if _depth >= max_depth:
                logger.warning(
                    f"Message part tree exceeds max depth ({max_depth}); "
                    f"dropping {len(raw_parts)} nested parts"
                )
            else:
                parts = tuple(
                    cls.from_dict(p, max_depth, _depth + 1) for p in raw_parts
                )

        return cls(
            mime_type=data.get("mimeType") or None,
            body_data=body_data or None,
            parts=parts,
        )


@dataclass(frozen=True)
class RawMessage:
    """
    Container for one mailbox message, before any extraction

    Headers keep their original order and case; lookups through
    ``get_header`` are case-insensitive.
    """
    message_id: str
    thread_id: str
    headers: Tuple[Tuple[str, str], ...]
    internal_date_ms: int
    payload: MessagePart

    def get_header(self, name: str, default: str = "") -> str:
        """Return the first header value whose name matches, ignoring case."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value or default
        return default

    @property
    def subject(self) -> str:
        return self.get_header("Subject")

    @property
    def sender(self) -> str:
        return self.get_header("From")

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        max_depth: int = DEFAULT_MAX_PART_DEPTH,
    ) -> "RawMessage":
        """
        Build a RawMessage from a Gmail API message dictionary.

        Raises:
            ValueError: If ``internalDate`` is missing or not an integer
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Message must be a mapping, got {type(data).__name__}")

        payload_data = data.get("payload")
        if not isinstance(payload_data, Mapping):
            payload_data = {}

        headers = []
        for header in payload_data.get("headers") or []:
            if isinstance(header, Mapping) and header.get("name"):
                headers.append((str(header["name"]), str(header.get("value") or "")))

        internal_date = data.get("internalDate")
        try:
            internal_date_ms = int(internal_date)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid internalDate: {internal_date!r}") from None

        return cls(
            message_id=str(data.get("id") or ""),
            thread_id=str(data.get("threadId") or ""),
            headers=tuple(headers),
            internal_date_ms=internal_date_ms,
            payload=MessagePart.from_dict(payload_data, max_depth),
        )
