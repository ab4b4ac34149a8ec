"""Pydantic schemas for query generation and validation results."""
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from models.schema import Schema

QUERY_TYPES = ("SELECT", "INSERT", "UPDATE", "DELETE", "ALTER", "CREATE")


class QueryRequest(BaseModel):
    """Body of the query endpoints: an inline schema or a stored session id."""
    schema_: Optional[Schema] = Field(None, alias="schema")
    session_id: Optional[str] = None
    prompt: str = ""
    query_type: str = "SELECT"
    query: str = ""

    model_config = ConfigDict(populate_by_name=True)


class QueryResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str = ""
    explanation: str = ""
    tips: list[str] = Field(default_factory=list)
    execute_time: int = 0            # model round-trip, ms


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["error", "warning", "info"] = "info"
    message: str
    location: str = ""
    suggestion: str = ""


class QueryValidation(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool = True
    score: int = Field(50, ge=0, le=100)
    original_query: str = ""
    optimized_query: str = ""
    issues: list[Issue] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    index_usage: list[str] = Field(default_factory=list)
    execution_plan: str = ""
    estimated_time: str = ""
    ai_response_time: int = 0        # model round-trip, ms
