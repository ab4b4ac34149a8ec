"""POST /api/generate | optimize | explain | validate — LLM-backed query operations."""
import logging
from typing import Optional
from fastapi import APIRouter, HTTPException

from api.schema import get_session_schema
from core.query_generator import QueryGenerator
from integrations.llm_factory import get_llm_client
from models.query import QueryRequest, QueryResponse, QueryValidation
from models.schema import Schema

router = APIRouter()
logger = logging.getLogger(__name__)


def _resolve_schema(req: QueryRequest, required: bool = True):
    if req.schema_ is not None:
        return req.schema_
    if req.session_id:
        return get_session_schema(req.session_id)
    if required:
        raise HTTPException(status_code=400, detail="Provide a 'schema' or a 'session_id'.")
    return None


def _generator(schema: Optional[Schema]) -> QueryGenerator:
    try:
        llm = get_llm_client()
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return QueryGenerator(llm, schema)


def _require(value: str, field: str) -> str:
    if not value.strip():
        raise HTTPException(status_code=400, detail=f"'{field}' is required.")
    return value


@router.post("/generate", response_model=QueryResponse)
def generate(req: QueryRequest):
    prompt = _require(req.prompt, "prompt")
    generator = _generator(_resolve_schema(req))
    try:
        return generator.generate(prompt, req.query_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        logger.error("Query generation failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/optimize", response_model=QueryResponse)
def optimize(req: QueryRequest):
    query = _require(req.query, "query")
    generator = _generator(_resolve_schema(req))
    try:
        return generator.optimize(query)
    except RuntimeError as e:
        logger.error("Query optimization failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/explain")
def explain(req: QueryRequest):
    query = _require(req.query, "query")
    generator = _generator(_resolve_schema(req, required=False))
    try:
        return {"query": query, "explanation": generator.explain(query)}
    except RuntimeError as e:
        logger.error("Query explanation failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/validate", response_model=QueryValidation)
def validate(req: QueryRequest):
    query = _require(req.query, "query")
    generator = _generator(_resolve_schema(req))
    try:
        return generator.validate(query)
    except RuntimeError as e:
        logger.error("Query validation failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
