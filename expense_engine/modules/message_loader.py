"""
Message Loader Module
Reads Gmail API message dumps from disk for offline extraction runs

Each JSON file may hold a single message object, a list of messages, or an
object with a ``messages`` list (the shape of a saved batch).  Directories
contribute their ``*.json`` files in sorted order.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Union

PathLike = Union[str, Path]


class MessageLoader:
    """
    Loads raw message dictionaries from files and directories

    A file that cannot be read or parsed is logged and skipped.
    """

    def __init__(self):
        self.logger = logging.getLogger("MessageLoader")

    def load(self, paths: Iterable[PathLike]) -> List[Dict[str, Any]]:
        """
        Load every message found under ``paths``

        Args:
            paths: Files and/or directories

        Returns:
            Raw message dictionaries in file order
        """
        messages: List[Dict[str, Any]] = []
        for path in self._expand(paths):
            loaded = self._load_file(path)
            self.logger.debug(f"Loaded {len(loaded)} messages from {path}")
            messages.extend(loaded)
        return messages

    def _expand(self, paths: Iterable[PathLike]) -> Iterator[Path]:
        for raw_path in paths:
            path = Path(raw_path)
            if path.is_dir():
                yield from sorted(path.glob("*.json"))
            elif path.is_file():
                yield path
            else:
                self.logger.warning(f"Input path not found: {path}")

    def _load_file(self, path: Path) -> List[Dict[str, Any]]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            self.logger.error(f"Could not read messages from {path}: {e}")
            return []

        if isinstance(data, dict) and isinstance(data.get("messages"), list):
            items = data["messages"]
        elif isinstance(data, list):
            items = data
        elif isinstance(data, dict):
            items = [data]
        else:
            self.logger.warning(f"Unsupported JSON document in {path}")
            return []

        messages = [item for item in items if isinstance(item, dict)]
        skipped = len(items) - len(messages)
        if skipped:
            self.logger.warning(f"Skipped {skipped} non-object entries in {path}")
        return messages
