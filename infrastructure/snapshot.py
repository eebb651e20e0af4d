"""Client-side key-value snapshot

Keeps the reservation collection, rate plan table and alert list across
restarts between backend syncs. One JSON document, one top-level key per
collection.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class SnapshotStore:
    """In-memory key-value snapshot, optionally mirrored to a JSON file"""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._data: Dict[str, Any] = {}
        if self.path and self.path.exists():
            self._data = json.loads(self.path.read_text(encoding="utf-8"))
            logger.info("Loaded snapshot %s (%d keys)", self.path, len(self._data))

    def load(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def save(self, key: str, value: Any) -> None:
        self._data[key] = value
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
            tmp.replace(self.path)

    def keys(self):
        return list(self._data.keys())
