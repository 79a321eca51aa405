# data/liked_store.py

"""
Viewer-local "liked" flags.

Remembers which stickers a given viewer has liked so the heart can be
drawn filled or outlined. Stored as a JSON file:

    { "<viewer id>": [12, 40, 41], ... }

This is a cache of viewer intent only. The shared like count lives on
the sticker row in the record store and is never written here.
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Union

from config import LIKED_STORE_PATH


class LikedStore:
    """
    All access goes through one lock, and writes swap a fully written
    temp file into place, so a reader never sees a half-written file.
    """

    def __init__(self, path: Union[str, Path] = LIKED_STORE_PATH):
        self.path = Path(path)
        self._lock = threading.Lock()

    # Callers must hold self._lock.
    def _load_all(self) -> Dict[str, List[int]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (OSError, ValueError):
            return {}

    def _save_all(self, data: Dict[str, List[int]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def liked_items(self, viewer_id: str) -> List[int]:
        with self._lock:
            return list(self._load_all().get(viewer_id, []))

    def is_liked(self, viewer_id: str, item_id: int) -> bool:
        return item_id in self.liked_items(viewer_id)

    def set_liked(self, viewer_id: str, item_id: int, liked: bool) -> None:
        with self._lock:
            data = self._load_all()
            items = data.setdefault(viewer_id, [])

            if liked and item_id not in items:
                items.append(item_id)
            elif not liked and item_id in items:
                items.remove(item_id)
            else:
                return

            self._save_all(data)
