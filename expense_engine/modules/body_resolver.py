"""
Body Resolver Module
Flattens a nested message payload into one text blob for the extractors

PATTERN RECOGNITION: Bank alerts arrive in every MIME shape there is: a bare
text/html body, multipart/alternative with plain and HTML siblings, or a
multipart/mixed wrapper around an alternative part.  Rather than pick one
"best" part, every textual fragment is kept, in document order, because the
amount may live in the plain part while the merchant only appears in an HTML
table cell.

SECURITY STORY: Body data is attacker-controlled.  Decoding never raises; a
malformed node contributes empty text, and a depth guard stops traversal of a
pathologically nested tree.
"""

import base64
import binascii
import logging
from typing import Sequence

from .raw_message import DEFAULT_MAX_PART_DEPTH, MessagePart

TEXT_MIME_TYPES = ("text/plain", "text/html")
# Looser check for other parts that still carry readable text
TEXTUAL_MIME_MARKERS = ("text", "html", "plain")

logger = logging.getLogger(__name__)


def decode_body_data(data: str) -> str:
    """
    Decode Gmail's URL-safe base64 body data to text

    ``-`` and ``_`` are mapped back to ``+`` and ``/``, stripped padding is
    restored, and the bytes are decoded as UTF-8 with replacement characters.

    Args:
        data: Encoded body data

    Returns:
        Decoded text, or "" if the data is not valid base64
    """
    if not data:
        return ""
    try:
        standard = "".join(data.split()).replace("-", "+").replace("_", "/")
        standard += "=" * (-len(standard) % 4)
        raw = base64.b64decode(standard)
    except (binascii.Error, ValueError) as e:
        logger.debug(f"Failed to decode body data: {e}")
        return ""
    return raw.decode("utf-8", errors="replace")


class BodyResolver:
    """
    Produces the text representation of a payload tree

    MAINTENANCE WISDOM: Each recursive call returns its own string and the
    caller joins them; there is no shared accumulator, so one resolver can be
    used from many threads at once.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_PART_DEPTH):
        """
        Args:
            max_depth: Deepest level of child parts that is traversed
        """
        self.max_depth = max_depth
        self.logger = logging.getLogger("BodyResolver")

    def resolve(self, payload: MessagePart) -> str:
        """
        Resolve a payload tree into text

        Inline body data on the root wins outright.  Otherwise every qualifying
        child fragment is joined with newlines.

        Args:
            payload: Root node of the message payload

        Returns:
            Body text, or "" when nothing readable was found
        """
        if payload.body_data:
            text = decode_body_data(payload.body_data)
            if text.strip():
                return text
            self.logger.debug("Root body data decoded to nothing, trying child parts")

        return self._resolve_parts(payload.parts, depth=1)

    def _resolve_parts(self, parts: Sequence[MessagePart], depth: int) -> str:
        """Concatenate the text of ``parts`` and their descendants"""
        if not parts:
            return ""
        if depth > self.max_depth:
            self.logger.warning(
                f"Message part tree exceeds max depth ({self.max_depth}); "
                f"skipping {len(parts)} nested parts"
            )
            return ""

        fragments = []
        for part in parts:
            mime_type = (part.mime_type or "").lower()

            if mime_type in TEXT_MIME_TYPES and part.body_data:
                content = decode_body_data(part.body_data)
            elif part.parts:
                content = self._resolve_parts(part.parts, depth + 1)
            elif part.body_data and any(m in mime_type for m in TEXTUAL_MIME_MARKERS):
                content = decode_body_data(part.body_data)
            else:
                continue

            if content.strip():
                fragments.append(content)

        return "\n".join(fragments)
