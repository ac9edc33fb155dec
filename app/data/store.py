"""JSON-backed document store.

The store keeps a handful of named collections (``credentials``,
``playlists``, ``tracks``), each a mapping of document id to a plain dict.
All operations hold a single re-entrant lock, so a read-modify-write such as
``patch_if`` is atomic with respect to other callers in the same process.

When a path is given, every mutation rewrites the whole file using an atomic
replace: the JSON content is written to a temporary file in the same
directory, flushed and fsynced, then moved over the target with os.replace.
Readers of the file therefore see either the previous document set or the
new one, never a truncated file. Without a path the store is memory-only.
"""

import json
import os
from pathlib import Path
import tempfile
import threading
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from app.core import log_warning

COLLECTIONS = ("credentials", "playlists", "tracks")

Document = Dict[str, Any]


class DocumentStore:
    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else None
        self._lock = threading.RLock()
        self._data: Dict[str, Dict[str, Document]] = self._load()

    # ---------- persistence ----------

    def _load(self) -> Dict[str, Dict[str, Document]]:
        data: Dict[str, Dict[str, Document]] = {name: {} for name in COLLECTIONS}
        if self.path is None:
            return data

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            return data
        except json.JSONDecodeError:
            log_warning(f"Store file {self.path} is corrupted; starting empty.")
            return data

        if not isinstance(raw, dict):
            log_warning(f"Store file {self.path} has invalid structure; ignoring it.")
            return data

        for name in COLLECTIONS:
            docs = raw.get(name)
            if isinstance(docs, dict):
                data[name] = {
                    doc_id: doc for doc_id, doc in docs.items() if isinstance(doc, dict)
                }
        return data

    def _flush(self) -> None:
        if self.path is None:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path_str = tempfile.mkstemp(
            dir=str(self.path.parent),
            prefix=self.path.name,
            suffix=".tmp",
        )
        tmp_path = Path(tmp_path_str)

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except Exception:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                pass
            raise

    def _collection(self, name: str) -> Dict[str, Document]:
        if name not in self._data:
            raise KeyError(f"Unknown collection: {name!r}")
        return self._data[name]

    def _commit(self, collection: str, changes: Dict[str, Optional[Document]]) -> None:
        """
        Apply `changes` (None removes a document) and flush them.

        If the write fails, memory is put back to its previous state before
        the error propagates.
        """
        docs = self._collection(collection)
        previous = {doc_id: docs.get(doc_id) for doc_id in changes}

        def apply(values: Dict[str, Optional[Document]]) -> None:
            for doc_id, doc in values.items():
                if doc is None:
                    docs.pop(doc_id, None)
                else:
                    docs[doc_id] = doc

        apply(changes)
        try:
            self._flush()
        except Exception:
            apply(previous)
            raise

    # ---------- CRUD ----------

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        with self._lock:
            doc = self._collection(collection).get(doc_id)
            return dict(doc) if doc is not None else None

    def insert(
        self,
        collection: str,
        doc: Document,
        doc_id: Optional[str] = None,
    ) -> str:
        """Insert a document and return its id (a new uuid4 unless given)."""
        with self._lock:
            doc_id = doc_id or str(uuid4())
            self._commit(collection, {doc_id: {**doc, "id": doc_id}})
            return doc_id

    def put(self, collection: str, doc_id: str, doc: Document) -> None:
        """Insert or fully replace the document stored under doc_id."""
        with self._lock:
            self._commit(collection, {doc_id: {**doc, "id": doc_id}})

    def patch(self, collection: str, doc_id: str, fields: Document) -> Document:
        with self._lock:
            current = self._collection(collection).get(doc_id)
            if current is None:
                raise KeyError(f"{collection}/{doc_id} not found")
            updated = {**current, **fields, "id": doc_id}
            self._commit(collection, {doc_id: updated})
            return dict(updated)

    def patch_if(
        self,
        collection: str,
        doc_id: str,
        fields: Document,
        condition: Callable[[Document], bool],
    ) -> bool:
        """
        Apply `fields` only if `condition(current_doc)` holds.

        Returns False (and writes nothing) when the document is missing or the
        condition fails.
        """
        with self._lock:
            current = self._collection(collection).get(doc_id)
            if current is None or not condition(dict(current)):
                return False
            self._commit(collection, {doc_id: {**current, **fields, "id": doc_id}})
            return True

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            if doc_id not in self._collection(collection):
                return False
            self._commit(collection, {doc_id: None})
            return True

    def delete_where(self, collection: str, **equals: Any) -> int:
        with self._lock:
            doomed = [
                doc_id
                for doc_id, doc in self._collection(collection).items()
                if all(doc.get(k) == v for k, v in equals.items())
            ]
            if doomed:
                self._commit(collection, {doc_id: None for doc_id in doomed})
            return len(doomed)

    def find(self, collection: str, **equals: Any) -> List[Document]:
        """Return copies of all documents whose fields equal `equals`, in insertion order."""
        with self._lock:
            return [
                dict(doc)
                for doc in self._collection(collection).values()
                if all(doc.get(k) == v for k, v in equals.items())
            ]
