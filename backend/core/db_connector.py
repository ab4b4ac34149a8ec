"""
Database connector — SQLAlchemy engine factory and live schema extraction.
Supports MySQL, PostgreSQL, Oracle and SQL Server; the per-dialect catalog
work lives in core.introspection.
"""
import logging
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from config import settings
from core.introspection import get_introspector
from models.connection import ConnectionRequest
from models.schema import DBType, Schema

logger = logging.getLogger(__name__)

_PING_QUERY = {
    DBType.ORACLE: "SELECT 1 FROM DUAL",
}


def _connect_args(req: ConnectionRequest) -> dict:
    timeout = settings.DB_CONNECT_TIMEOUT_SECONDS
    if req.db_type in (DBType.MYSQL, DBType.POSTGRESQL):
        return {"connect_timeout": timeout}
    if req.db_type == DBType.SQLSERVER:
        return {"login_timeout": timeout}
    return {}


def create_engine_from_request(req: ConnectionRequest):
    """Build and test a SQLAlchemy engine from a ConnectionRequest."""
    url = req.get_sqlalchemy_url()
    engine = create_engine(url, pool_pre_ping=True, connect_args=_connect_args(req))
    # Validate the connection immediately
    try:
        with engine.connect() as conn:
            conn.execute(text(_PING_QUERY.get(req.db_type, "SELECT 1")))
    except SQLAlchemyError as e:
        engine.dispose()
        raise ValueError(f"Could not connect to {req.db_type.value} database: {e}") from e
    return engine


def extract_schema(req: ConnectionRequest) -> Schema:
    """
    Connect and extract the full Schema of the target database.
    Any catalog query failure propagates to the caller; no partial schema is returned.
    """
    engine = create_engine_from_request(req)
    introspector = get_introspector(req.db_type)
    try:
        with engine.connect() as conn:
            schema = introspector.extract_schema(conn, req.database)
    finally:
        engine.dispose()
    logger.info("Extracted %d tables from %s@%s", len(schema.tables), req.database, req.host)
    return schema
