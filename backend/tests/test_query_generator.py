import pytest
from conftest import FakeLLM

from core.ddl_parser import parse_ddl
from core.query_generator import QueryGenerator, format_schema

GENERATION_REPLY = """SQL:
```sql
SELECT u.email, SUM(o.total) AS revenue
FROM users u JOIN orders o ON o.user_id = u.id
GROUP BY u.email
```

설명:
Sums order totals per user.

최적화 팁:
- Index orders.user_id
"""

VALIDATION_REPLY = """유효성: false
점수: 35
문제점:
- [error] unknown column nmae | location: SELECT list | suggestion: use name
최적화된 쿼리:
SELECT name FROM users
"""


@pytest.fixture
def schema(sample_ddl):
    return parse_ddl(sample_ddl)


def test_format_schema(schema):
    text = format_schema(schema)
    assert "Table: users" in text
    assert "  - id INT [PK]" in text
    assert "  - email VARCHAR(255) [UNIQUE]" in text
    assert "  - user_id INT [FK]" in text
    assert "  - idx_orders_status (status)" in text
    assert "  - user_id -> users.id" in text


def test_generate_builds_prompt_and_extracts(schema):
    llm = FakeLLM(GENERATION_REPLY)
    resp = QueryGenerator(llm, schema).generate("revenue per user", "select")

    assert resp.query.startswith("SELECT u.email")
    assert resp.query.endswith("GROUP BY u.email")
    assert resp.explanation == "Sums order totals per user."
    assert resp.tips == ["Index orders.user_id"]
    assert resp.execute_time >= 0

    prompt = llm.prompts[0]
    assert "mysql" in prompt
    assert "revenue per user" in prompt
    assert "SELECT" in prompt
    assert "Table: orders" in prompt
    assert "최적화 팁:" in prompt


def test_generate_rejects_unknown_query_type(schema):
    llm = FakeLLM(GENERATION_REPLY)
    with pytest.raises(ValueError, match="Unsupported query type"):
        QueryGenerator(llm, schema).generate("drop everything", "TRUNCATE")
    assert llm.prompts == []


def test_operations_need_a_schema():
    generator = QueryGenerator(FakeLLM(GENERATION_REPLY))
    with pytest.raises(ValueError, match="No schema loaded"):
        generator.generate("anything")
    with pytest.raises(ValueError):
        generator.optimize("SELECT 1")
    with pytest.raises(ValueError):
        generator.validate("SELECT 1")


def test_optimize(schema):
    llm = FakeLLM("SQL:\nSELECT id FROM users WHERE email = ?\n설명:\nNarrow projection.")
    resp = QueryGenerator(llm, schema).optimize("SELECT * FROM users WHERE email = ?")
    assert resp.query == "SELECT id FROM users WHERE email = ?"
    assert "SELECT * FROM users WHERE email = ?" in llm.prompts[0]


def test_explain_works_without_schema():
    llm = FakeLLM("설명: Counts all rows.")
    assert QueryGenerator(llm).explain("SELECT COUNT(*) FROM t") == "Counts all rows."


def test_validate(schema):
    llm = FakeLLM(VALIDATION_REPLY)
    v = QueryGenerator(llm, schema).validate("SELECT nmae FROM users")
    assert v.is_valid is False
    assert v.score == 35
    assert v.issues[0].type == "error"
    assert v.issues[0].suggestion == "use name"
    assert v.optimized_query == "SELECT name FROM users"
    assert v.original_query == "SELECT nmae FROM users"


def test_llm_failure_propagates(schema):
    llm = FakeLLM(RuntimeError("Ollama failed after 3 attempts"))
    with pytest.raises(RuntimeError):
        QueryGenerator(llm, schema).generate("anything")
