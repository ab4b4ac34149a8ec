"""POST /api/connect — connect to a live database, extract its schema, open a session."""
import logging
import time
from fastapi import APIRouter, HTTPException

from api.schema import session_payload
from core.db_connector import extract_schema
from core.session import sessions
from models.connection import ConnectionRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/connect", status_code=201)
def connect(req: ConnectionRequest):
    """
    1. Validate DB connection
    2. Introspect tables, columns, keys and indexes
    3. Store the Schema under a new session
    """
    t0 = time.time()
    try:
        schema = extract_schema(req)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Schema extraction failed")
        raise HTTPException(status_code=500, detail=f"Extraction error: {e}")

    session_id = sessions.create(schema)
    payload = session_payload(session_id, schema)
    payload["duration_seconds"] = round(time.time() - t0, 2)
    return payload
