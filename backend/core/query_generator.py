"""
Query generator — prompt orchestration around the LLM client.
Formats the Schema into prompt text, calls the model, times the round trip
and hands the raw reply to the response extractor.
"""
import logging
import time
from typing import Optional

from core.response_extractor import extract_query_response, extract_validation
from integrations.llm_factory import LLMClient
from models.query import QUERY_TYPES, QueryResponse, QueryValidation
from models.schema import Schema
from prompts.query_generation import (
    EXPLANATION_HEADER,
    query_explanation_prompt,
    query_generation_prompt,
    query_optimization_prompt,
    query_validation_prompt,
)

logger = logging.getLogger(__name__)


def format_schema(schema: Schema) -> str:
    """Render a Schema as the plain-text block embedded in every prompt."""
    lines = []
    for table in schema.tables:
        lines.append(f"Table: {table.name}")
        lines.append("Columns:")
        for col in table.columns:
            flags = ""
            if col.is_pk:
                flags += " [PK]"
            if col.is_fk:
                flags += " [FK]"
            if col.is_unique:
                flags += " [UNIQUE]"
            lines.append(f"  - {col.name} {col.type}{flags}")

        if table.indexes:
            lines.append("Indexes:")
            for idx in table.indexes:
                unique = " UNIQUE" if idx.is_unique else ""
                lines.append(f"  - {idx.name}{unique} ({', '.join(idx.columns)})")

        if table.foreign_keys:
            lines.append("Foreign keys:")
            for fk in table.foreign_keys:
                lines.append(f"  - {fk.column} -> {fk.ref_table}.{fk.ref_column}")
        lines.append("")
    return "\n".join(lines)


def _elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


class QueryGenerator:
    """Natural-language → SQL operations against one explicit Schema."""

    def __init__(self, llm: LLMClient, schema: Optional[Schema] = None):
        self.llm = llm
        self.schema = schema

    def _require_schema(self) -> Schema:
        if self.schema is None:
            raise ValueError("No schema loaded")
        return self.schema

    def _call(self, prompt: str) -> tuple[str, int]:
        t0 = time.perf_counter()
        raw = self.llm.generate(prompt)
        elapsed = _elapsed_ms(t0)
        logger.debug("%s replied in %d ms (%d chars)", self.llm.name, elapsed, len(raw))
        return raw, elapsed

    def generate(self, prompt: str, query_type: str = "SELECT") -> QueryResponse:
        query_type = query_type.upper()
        if query_type not in QUERY_TYPES:
            raise ValueError(f"Unsupported query type: {query_type}")
        schema = self._require_schema()
        text = query_generation_prompt.format(
            db_type=schema.db_type.value,
            schema_text=format_schema(schema),
            prompt=prompt,
            query_type=query_type,
        )
        raw, elapsed = self._call(text)
        response = extract_query_response(raw, execute_time=elapsed)
        logger.info("Generated %s query in %d ms for: %s", query_type, elapsed, prompt[:80])
        return response

    def optimize(self, query: str) -> QueryResponse:
        schema = self._require_schema()
        text = query_optimization_prompt.format(
            db_type=schema.db_type.value,
            query=query,
            schema_text=format_schema(schema),
        )
        raw, elapsed = self._call(text)
        return extract_query_response(raw, execute_time=elapsed)

    def explain(self, query: str) -> str:
        raw, _ = self._call(query_explanation_prompt.format(query=query))
        raw = raw.strip()
        # The prompt ends with the explanation header; some models repeat it.
        if raw.startswith(EXPLANATION_HEADER):
            raw = raw[len(EXPLANATION_HEADER):].strip()
        return raw

    def validate(self, query: str) -> QueryValidation:
        schema = self._require_schema()
        text = query_validation_prompt.format(
            query=query,
            db_type=schema.db_type.value,
            schema_text=format_schema(schema),
        )
        raw, elapsed = self._call(text)
        validation = extract_validation(raw, query, ai_response_time=elapsed)
        logger.info("Validated query: score=%d valid=%s issues=%d",
                    validation.score, validation.is_valid, len(validation.issues))
        return validation
