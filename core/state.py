"""Persistence adapter: keeps the planner's input blob in a JSON file.

Only ``userProfile``, ``plots`` and ``timelineEvents`` are written.  Metrics,
projections and charts are rebuilt by the store after every restore.
"""
import json
import logging
import os
from typing import Any, Dict, Optional

import streamlit as st

from core.config import settings
from core.exceptions import PersistenceError
from core.store import PlannerStore

logger = logging.getLogger(__name__)

SESSION_FILE = settings.session_file
STORE_KEY = "planner_store"

# Keys of the persisted blob. Anything else found in the file is ignored.
PERSISTED_KEYS = {"userProfile", "plots", "timelineEvents"}


class JsonFileStorage:
    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or SESSION_FILE

    def load(self) -> Optional[Dict[str, Any]]:
        """Return the stored blob, or ``None`` when nothing has been saved yet."""
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceError(f"{self.path} does not hold a planner blob")
        return {k: v for k, v in data.items() if k in PERSISTED_KEYS}

    def save(self, blob: Dict[str, Any]) -> None:
        data = {k: v for k, v in blob.items() if k in PERSISTED_KEYS}
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise PersistenceError(f"Could not write {self.path}: {exc}") from exc


def attach_storage(store: PlannerStore, storage: JsonFileStorage, autosave: bool = settings.autosave) -> PlannerStore:
    """Wire ``storage`` in as the store's restore hook and, if ``autosave``, flush hook."""
    store.on_restore = storage.load
    store.on_flush = storage.save if autosave else None
    return store


def load_state(store: PlannerStore, path: Optional[str] = None) -> bool:
    """Restore ``store`` from ``path`` if it exists. Returns whether anything was loaded."""
    blob = JsonFileStorage(path).load()
    if not blob:
        return False
    store.hydrate(blob)
    return True


def save_state(store: PlannerStore, path: Optional[str] = None) -> None:
    """Persist the store's input blob to ``path``."""
    JsonFileStorage(path).save(store.snapshot())


def get_store() -> PlannerStore:
    """Session-scoped store for the Streamlit app, restored from ``SESSION_FILE``."""
    if STORE_KEY not in st.session_state:
        store = attach_storage(PlannerStore(), JsonFileStorage(SESSION_FILE))
        st.session_state[STORE_KEY] = store
        logger.info("Planner store created", extra={"session_file": SESSION_FILE})
    return st.session_state[STORE_KEY]
