#!/usr/bin/env python3
"""
MODLINT DOCUMENT SPLITTER - Render Ingestion
--------------------------------------------
Turns the per-template text produced by a render into StoreObjects.

Every template is cut on a literal `---`, each piece is parsed as one
generic mapping, and the result is handed to the ObjectStore. One bad
document aborts the whole render.

Before any of that, the RenderCache is consulted: a render result whose
hash was already ingested during this run is skipped outright. The cache
keys on content alone, so two different modules rendering byte-identical
output share one ingestion. That skip is logged at warning level.

Author: ModLint Team
Date: 2026-01-16
"""

import hashlib
import logging
import threading
from typing import Dict, Iterator, Mapping, Optional

from ruamel.yaml import YAML, YAMLError

from modlint.core.errors import DocumentError, IndexConflictError
from modlint.core.values import to_plain
from modlint.storage.store import ObjectStore

logger = logging.getLogger("modlint.splitter")

DOCUMENT_SEPARATOR = "---"


def render_hash(files: Mapping[str, str]) -> str:
    """Order-independent digest of a whole render result."""
    digest = hashlib.sha256()
    for path in sorted(files):
        digest.update(path.encode("utf-8"))
        digest.update(b"\x00")
        digest.update(files[path].encode("utf-8"))
        digest.update(b"\x00")
    return digest.hexdigest()


def split_documents(text: str) -> Iterator[str]:
    """Yields the pieces between literal separators, one at a time."""
    start = 0
    while True:
        end = text.find(DOCUMENT_SEPARATOR, start)
        if end < 0:
            break
        yield text[start:end]
        start = end + len(DOCUMENT_SEPARATOR)
    if start < len(text):
        yield text[start:]


class RenderCache:
    """
    Render hashes already ingested during one lint run.
    Safe to share between worker threads; entries are never removed
    except by `reset()`.
    """

    def __init__(self):
        self._seen = set()
        self._lock = threading.Lock()

    def __contains__(self, digest: str) -> bool:
        with self._lock:
            return digest in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def add(self, digest: str) -> bool:
        """Records a hash. Returns False when it was already there."""
        with self._lock:
            if digest in self._seen:
                return False
            self._seen.add(digest)
            return True

    def reset(self):
        with self._lock:
            self._seen.clear()


class DocumentSplitter:
    def __init__(self, cache: Optional[RenderCache] = None):
        self.cache = cache if cache is not None else RenderCache()

    def ingest(self, module_name: str, files: Dict[str, str], store: ObjectStore) -> bool:
        """
        Parses `files` into `store`. Returns False when the render was a
        duplicate and the store was left untouched.
        """
        digest = render_hash(files)
        if digest in self.cache:
            logger.warning(
                f"{module_name}: rendered output {digest[:12]} was already ingested in this run, skipping"
            )
            return False

        for path in sorted(files):
            # helm keys output by chart name, which may differ from the module name.
            short_path = path.split("/", 1)[1] if "/" in path else path
            for doc in split_documents(files[path]):
                if not doc:
                    continue
                node = self._parse(doc, short_path)
                if not node:
                    continue
                try:
                    store.put(path, node, doc.encode("utf-8"))
                except IndexConflictError as e:
                    e.module = module_name
                    raise

        self.cache.add(digest)
        logger.debug(f"{module_name}: ingested {len(store)} objects from {len(files)} templates")
        return True

    def _parse(self, doc: str, short_path: str) -> Dict:
        try:
            node = YAML(typ="safe", pure=True).load(doc)
        except YAMLError as e:
            raise DocumentError(short_path, str(e).strip())

        if node is None:
            return {}
        if not isinstance(node, Mapping):
            raise DocumentError(short_path, f"expected a mapping, got {type(node).__name__}")
        try:
            return to_plain(node)
        except TypeError as e:
            # Tags such as !!binary or !!set load as values JSON cannot hold.
            raise DocumentError(short_path, str(e))
