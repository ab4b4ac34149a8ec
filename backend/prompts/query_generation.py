"""
LangChain prompt templates for SQL Genius.

The section headers below are echoed back verbatim by the model and are the
only vocabulary core.response_extractor recognises. Change them together.
"""
from langchain_core.prompts import PromptTemplate

# ── Response headers ──────────────────────────────────────────────────────────

SQL_HEADER = "SQL:"
EXPLANATION_HEADER = "설명:"
TIPS_HEADER = "최적화 팁:"

VALIDITY_HEADER = "유효성:"
SCORE_HEADER = "점수:"
ISSUES_HEADER = "문제점:"
INDEX_USAGE_HEADER = "인덱스 활용:"
OPTIMIZED_QUERY_HEADER = "최적화된 쿼리:"
EXECUTION_PLAN_HEADER = "실행 계획:"
ESTIMATED_TIME_HEADER = "예상 시간:"
SUGGESTIONS_HEADER = "개선 제안:"

LOCATION_LABEL = "location:"
SUGGESTION_LABEL = "suggestion:"
NO_INDEX_PLACEHOLDER = "없음"
ALREADY_OPTIMAL_MARKER = "원본 쿼리가 최적"
ALREADY_OPTIMAL_PHRASE = f"{ALREADY_OPTIMAL_MARKER}입니다"
VALID_AFFIRMATION = "유효"

# ── Query generation ──────────────────────────────────────────────────────────

QUERY_GENERATION_TEMPLATE = f"""\
You are a SQL expert. Analyse the database schema below and write an optimized
SQL query that fulfils the user's request.

## Database type: {{db_type}}

## Schema:
{{schema_text}}

## User request:
{{prompt}}

## Query type: {{query_type}}

## Requirements:
1. Use the available indexes wherever possible
2. Avoid unnecessary subqueries
3. Use appropriate JOINs
4. Follow {{db_type}} syntax

## Response format (use these headers exactly):
{SQL_HEADER}
(query)

{EXPLANATION_HEADER}
(short explanation)

{TIPS_HEADER}
- (tip 1)
- (tip 2)
"""

query_generation_prompt = PromptTemplate(
    input_variables=["db_type", "schema_text", "prompt", "query_type"],
    template=QUERY_GENERATION_TEMPLATE,
)

# ── Optimization ──────────────────────────────────────────────────────────────

QUERY_OPTIMIZATION_TEMPLATE = f"""\
You are a SQL optimization expert. Rewrite the query below so that it runs
faster against the given {{db_type}} schema.

## Original query:
{{query}}

## Schema:
{{schema_text}}

## Response format (use these headers exactly):
{SQL_HEADER}
(optimized query)

{EXPLANATION_HEADER}
(what changed and why)

{TIPS_HEADER}
- (tip 1)
- (tip 2)
"""

query_optimization_prompt = PromptTemplate(
    input_variables=["db_type", "query", "schema_text"],
    template=QUERY_OPTIMIZATION_TEMPLATE,
)

# ── Explanation ───────────────────────────────────────────────────────────────

QUERY_EXPLANATION_TEMPLATE = f"""\
Explain what the following SQL query does, step by step, in plain language:

{{query}}

{EXPLANATION_HEADER}"""

query_explanation_prompt = PromptTemplate(
    input_variables=["query"],
    template=QUERY_EXPLANATION_TEMPLATE,
)

# ── Validation ────────────────────────────────────────────────────────────────

QUERY_VALIDATION_TEMPLATE = f"""\
You are a SQL performance analyst. Analyse the query below and rate its performance.

## Query to analyse:
{{query}}

## Database schema ({{db_type}}):
{{schema_text}}

## Analyse the following:
1. Whether the query syntax is valid
2. A performance score (0-100)
3. Problems found (type: error/warning/info)
4. Which indexes can be used
5. A better query, if there is one
6. The expected execution plan

## Response format (follow it exactly):
{VALIDITY_HEADER} (true or false)
{SCORE_HEADER} (number 0-100 only)

{ISSUES_HEADER}
- [error] (problem) | {LOCATION_LABEL} (where) | {SUGGESTION_LABEL} (fix)
- [warning] (problem) | {LOCATION_LABEL} (where) | {SUGGESTION_LABEL} (fix)
- [info] (problem) | {LOCATION_LABEL} (where) | {SUGGESTION_LABEL} (fix)

{INDEX_USAGE_HEADER}
- (usable index 1)
- (usable index 2)
(write "- {NO_INDEX_PLACEHOLDER}" when no index applies)

{OPTIMIZED_QUERY_HEADER}
(a better query, or "{ALREADY_OPTIMAL_PHRASE}" when the original is already optimal)

{EXECUTION_PLAN_HEADER}
(expected execution plan)

{ESTIMATED_TIME_HEADER} (fast/normal/slow)

{SUGGESTIONS_HEADER}
- (suggestion 1)
- (suggestion 2)
"""

query_validation_prompt = PromptTemplate(
    input_variables=["query", "db_type", "schema_text"],
    template=QUERY_VALIDATION_TEMPLATE,
)
