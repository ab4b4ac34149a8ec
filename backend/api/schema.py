"""
Schema session endpoints.
POST /api/schema/parse stores a Schema decoded from DDL or JSON and returns its
session id; the remaining routes read, export or drop that session.
"""
import logging
from typing import Optional
from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from config import settings
from core.ddl_parser import SchemaDecodeError, generate_ddl, parse_ddl, parse_json, schema_to_dict, schema_to_json
from core.session import sessions
from models.schema import DBType, Schema

router = APIRouter()
logger = logging.getLogger(__name__)


class ParseRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ddl: Optional[str] = None
    json_doc: Optional[str] = Field(None, alias="json")
    db_type: Optional[DBType] = None


def get_session_schema(session_id: str) -> Schema:
    schema = sessions.get(session_id)
    if schema is None:
        raise HTTPException(404, detail=f"Schema session '{session_id}' not found.")
    return schema


def session_payload(session_id: str, schema: Schema) -> dict:
    return {"session_id": session_id, "schema": schema_to_dict(schema)}


@router.post("/schema/parse", status_code=201)
def parse_schema(req: ParseRequest):
    """Decode a JSON schema document or parse DDL text, then open a session for it."""
    if req.json_doc:
        try:
            schema = parse_json(req.json_doc)
        except SchemaDecodeError as e:
            raise HTTPException(status_code=400, detail=str(e))
    elif req.ddl:
        schema = parse_ddl(req.ddl, req.db_type or DBType(settings.DEFAULT_DB_TYPE))
    else:
        raise HTTPException(status_code=400, detail="Provide either 'ddl' or 'json'.")

    session_id = sessions.create(schema)
    return session_payload(session_id, schema)


@router.get("/schema/{session_id}")
def get_schema(session_id: str):
    return session_payload(session_id, get_session_schema(session_id))


@router.get("/schema/{session_id}/export")
def export_schema(session_id: str):
    schema = get_session_schema(session_id)
    return Response(
        content=schema_to_json(schema),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="schema.json"'},
    )


@router.get("/schema/{session_id}/ddl", response_class=PlainTextResponse)
def export_ddl(session_id: str):
    return generate_ddl(get_session_schema(session_id))


@router.get("/schema/{session_id}/tables/{table_name}")
def get_table(session_id: str, table_name: str):
    table = get_session_schema(session_id).find_table(table_name)
    if table is None:
        raise HTTPException(404, detail=f"Table '{table_name}' not found")
    return table.model_dump(mode="json")


@router.delete("/schema/{session_id}")
def delete_schema(session_id: str):
    if not sessions.delete(session_id):
        raise HTTPException(404, detail=f"Schema session '{session_id}' not found.")
    return {"message": f"Schema session '{session_id}' removed."}
