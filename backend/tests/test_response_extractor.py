import pytest
from core.response_extractor import (
    DEFAULT_SCORE,
    extract_query_response,
    extract_validation,
    parse_issue,
    parse_score,
    parse_validity,
    strip_code_fences,
)


def test_generation_sections():
    text = "SQL:\nSELECT 1\n\n설명:\nok\n\n최적화 팁:\n- use index\n- avoid scan"
    resp = extract_query_response(text, execute_time=42)
    assert resp.query == "SELECT 1"
    assert resp.explanation == "ok"
    assert resp.tips == ["use index", "avoid scan"]
    assert resp.execute_time == 42


def test_generation_strips_fences_and_keeps_sql_lines():
    text = (
        "SQL:\n"
        "```sql\n"
        "SELECT u.id,\n"
        "       u.email\n"
        "FROM users u\n"
        "```\n"
        "설명:\n"
        "  Lists every user.  \n"
        "Uses the primary key.\n"
        "최적화 팁:\n"
        "• add a LIMIT\n"
        "not a bullet\n"
        "-   index email\n"
    )
    resp = extract_query_response(text)
    assert resp.query == "SELECT u.id,\n       u.email\nFROM users u"
    assert resp.explanation == "Lists every user. Uses the primary key."
    assert resp.tips == ["add a LIMIT", "index email"]


def test_generation_accepts_markdown_headers():
    text = "## SQL:\nSELECT 2;\n**설명:**\nTwo."
    resp = extract_query_response(text)
    assert resp.query == "SELECT 2;"
    assert resp.explanation == "Two."


def test_generation_without_headers_degrades_to_empty():
    resp = extract_query_response("I cannot help with that.")
    assert resp.query == ""
    assert resp.explanation == ""
    assert resp.tips == []
    assert extract_query_response(None).query == ""


def test_strip_code_fences():
    assert strip_code_fences("```sql\nSELECT 1\n```") == "SELECT 1"
    assert strip_code_fences("SELECT 1") == "SELECT 1"
    assert strip_code_fences("```SELECT id FROM users```") == "SELECT id FROM users"
    assert strip_code_fences("```postgresql SELECT 1```") == "SELECT 1"
    assert strip_code_fences("```sqlcol FROM t```") == "sqlcol FROM t"


def test_inline_fenced_query_keeps_first_keyword():
    resp = extract_query_response("SQL:\n```SELECT id FROM users```\n설명:\nok")
    assert resp.query == "SELECT id FROM users"
    assert resp.explanation == "ok"

    v = extract_validation("최적화된 쿼리:\n```SELECT 1```\n", "SELECT 2")
    assert v.optimized_query == "SELECT 1"


def test_issue_line():
    issue = parse_issue("- [warning] missing index | location: users.email | suggestion: add index")
    assert issue.type == "warning"
    assert issue.message == "missing index"
    assert issue.location == "users.email"
    assert issue.suggestion == "add index"


def test_issue_defaults():
    issue = parse_issue("- full table scan")
    assert issue.type == "info"
    assert issue.message == "full table scan"
    assert issue.location == ""
    assert issue.suggestion == ""

    issue = parse_issue("- [ERROR] bad join | 위치: orders")
    assert issue.type == "error"
    assert issue.location == "orders"

    assert parse_issue("- [error]  | location: x") is None


@pytest.mark.parametrize("value, expected", [
    ("true", True),
    ("TRUE (syntax ok)", True),
    ("유효", True),
    ("false", False),
    ("무효", False),
])
def test_parse_validity(value, expected):
    assert parse_validity(value) is expected


@pytest.mark.parametrize("value, expected", [
    ("85", 85),
    ("85/100", 85),
    ("100", 100),
    ("1", 1),
    ("0", None),
    ("150", None),
    ("high", None),
])
def test_parse_score(value, expected):
    assert parse_score(value) == expected


VALIDATION_TEXT = """유효성: true
점수: 72/100

문제점:
- [warning] missing index | location: users.email | suggestion: add index
- [error] SELECT * returns unused columns | location: line 1 | suggestion: list columns
not a bullet

인덱스 활용:
- PRIMARY on users.id
- none

최적화된 쿼리:
```sql
SELECT id, email
FROM users
WHERE email = 'a@b.c'
```

실행 계획:
Index lookup on users.
Then filter.

예상 시간: ~5ms

개선 제안:
- Add index on users(email)
- 없음
"""


def test_validation_full_response():
    original = "SELECT * FROM users WHERE email = 'a@b.c'"
    v = extract_validation(VALIDATION_TEXT, original, ai_response_time=900)
    assert v.is_valid is True
    assert v.score == 72
    assert [i.type for i in v.issues] == ["warning", "error"]
    assert v.issues[1].suggestion == "list columns"
    assert v.index_usage == ["PRIMARY on users.id"]
    assert v.optimized_query == "SELECT id, email\nFROM users\nWHERE email = 'a@b.c'"
    assert v.execution_plan == "Index lookup on users. Then filter."
    assert v.estimated_time == "~5ms"
    assert v.suggestions == ["Add index on users(email)"]
    assert v.original_query == original
    assert v.ai_response_time == 900


def test_validation_without_score_uses_defaults():
    v = extract_validation("문제점:\n- [info] looks fine", "SELECT 1")
    assert v.score == DEFAULT_SCORE == 50
    assert v.is_valid is True
    assert v.optimized_query == "SELECT 1"
    assert len(v.issues) == 1


def test_validation_out_of_range_score_keeps_default():
    v = extract_validation("점수: 250\n유효성: false", "SELECT 1")
    assert v.score == 50
    assert v.is_valid is False


def test_validation_already_optimal_keeps_original():
    text = "최적화된 쿼리:\n원본 쿼리가 최적입니다\n\n실행 계획:\nconst lookup"
    v = extract_validation(text, "SELECT 1")
    assert v.optimized_query == "SELECT 1"
    assert v.execution_plan == "const lookup"


def test_validation_of_garbage_never_raises():
    v = extract_validation("¯\\_(ツ)_/¯", "SELECT 1")
    assert v.is_valid is True
    assert v.score == 50
    assert v.issues == []
    assert v.suggestions == []
