"""
Schema session store.
Each parsed or introspected Schema is kept under an opaque session id so
query endpoints can refer to it without the server holding a global
"current schema".
"""
import logging
import threading
import uuid
from typing import Optional

from models.schema import Schema

logger = logging.getLogger(__name__)


class SchemaSessionStore:
    """In-memory registry: session_id → Schema. Safe to share across request threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: dict[str, Schema] = {}

    def create(self, schema: Schema) -> str:
        session_id = uuid.uuid4().hex
        with self._lock:
            self._sessions[session_id] = schema
        logger.info("Stored schema session %s (%d tables)", session_id, len(schema.tables))
        return session_id

    def get(self, session_id: str) -> Optional[Schema]:
        with self._lock:
            return self._sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


sessions = SchemaSessionStore()
