"""
AI response extractor — turns free-form model text into QueryResponse /
QueryValidation records.

Both extractors are line classifiers: a line starting with a known section
header switches the current section and is itself discarded; every other line
is interpreted according to the current section. Extraction never raises;
missing sections leave the pre-seeded defaults in place.
"""
import re
from enum import Enum
from typing import Optional

from models.query import Issue, QueryResponse, QueryValidation
from prompts.query_generation import (
    ALREADY_OPTIMAL_MARKER,
    ESTIMATED_TIME_HEADER,
    EXECUTION_PLAN_HEADER,
    EXPLANATION_HEADER,
    INDEX_USAGE_HEADER,
    ISSUES_HEADER,
    LOCATION_LABEL,
    NO_INDEX_PLACEHOLDER,
    OPTIMIZED_QUERY_HEADER,
    SCORE_HEADER,
    SQL_HEADER,
    SUGGESTION_LABEL,
    SUGGESTIONS_HEADER,
    TIPS_HEADER,
    VALID_AFFIRMATION,
    VALIDITY_HEADER,
)

DEFAULT_SCORE = 50
MIN_SCORE, MAX_SCORE = 1, 100

_BULLETS = ("-", "•")
_FENCE_RE = re.compile(r"^```[\w+-]*$")
# A tag counts only when whitespace follows it: "```SELECT 1```" keeps SELECT.
_LEADING_FENCE_RE = re.compile(r"^```(?:\w*sql(?=\s|$))?\s*", re.IGNORECASE)
_SEVERITY_RE = re.compile(r"\[(error|warning|info)\]", re.IGNORECASE)
_SCORE_RE = re.compile(r"^[+-]?\d+")
_NONE_PLACEHOLDERS = {"none", NO_INDEX_PLACEHOLDER}
# Korean labels the model sometimes uses instead of the English ones.
_LOCATION_LABELS = (LOCATION_LABEL, "위치:")
_SUGGESTION_LABELS = (SUGGESTION_LABEL, "해결:")


class Section(Enum):
    NONE = "none"
    SQL = "sql"
    EXPLAIN = "explain"
    TIPS = "tips"
    ISSUES = "issues"
    INDEXES = "indexes"
    OPTIMIZED = "optimized"
    PLAN = "plan"
    SUGGESTIONS = "suggestions"


_GENERATION_HEADERS = (
    (SQL_HEADER, Section.SQL),
    (EXPLANATION_HEADER, Section.EXPLAIN),
    (TIPS_HEADER, Section.TIPS),
)

_VALIDATION_HEADERS = (
    (ISSUES_HEADER, Section.ISSUES),
    (INDEX_USAGE_HEADER, Section.INDEXES),
    (OPTIMIZED_QUERY_HEADER, Section.OPTIMIZED),
    (EXECUTION_PLAN_HEADER, Section.PLAN),
    (SUGGESTIONS_HEADER, Section.SUGGESTIONS),
)


# ── Line helpers ──────────────────────────────────────────────────────────────

def _header_text(stripped: str) -> str:
    """Drop markdown heading/emphasis marks so '## 설명:' and '**SQL:**' still match."""
    return stripped.lstrip("#* ").strip()


def _match_header(stripped: str, headers) -> Optional[Section]:
    candidate = _header_text(stripped)
    for header, section in headers:
        if candidate.startswith(header):
            return section
    return None


def _scalar_value(stripped: str, header: str) -> Optional[str]:
    """Value after a single-line header, or None when the line is not that header."""
    candidate = _header_text(stripped)
    if not candidate.startswith(header):
        return None
    return candidate[len(header):].strip().strip("*").strip()


def _is_fence(stripped: str) -> bool:
    return bool(_FENCE_RE.match(stripped))


def _bullet_text(stripped: str) -> Optional[str]:
    """Text of a bulleted line with the bullet removed, or None if not bulleted."""
    for bullet in _BULLETS:
        if stripped.startswith(bullet):
            return stripped[len(bullet):].strip()
    return None


def strip_code_fences(sql: str) -> str:
    sql = _LEADING_FENCE_RE.sub("", sql.strip())
    if sql.endswith("```"):
        sql = sql[:-3]
    return sql.strip()


def _strip_label(field: str, labels: tuple[str, ...]) -> str:
    field = field.strip()
    for label in labels:
        if field.lower().startswith(label.lower()):
            return field[len(label):].strip()
    return field


# ── Generation / optimization ─────────────────────────────────────────────────

def extract_query_response(text: Optional[str], execute_time: int = 0) -> QueryResponse:
    """Extract query, explanation and tips from a generation or optimization reply."""
    section = Section.NONE
    query_lines: list[str] = []
    explain_lines: list[str] = []
    tips: list[str] = []

    for line in (text or "").splitlines():
        stripped = line.strip()
        header = _match_header(stripped, _GENERATION_HEADERS)
        if header:
            section = header
            continue

        if section is Section.SQL:
            if stripped and not _is_fence(stripped):
                query_lines.append(line.rstrip())
        elif section is Section.EXPLAIN:
            if stripped:
                explain_lines.append(stripped)
        elif section is Section.TIPS:
            tip = _bullet_text(stripped)
            if tip:
                tips.append(tip)

    return QueryResponse(
        query=strip_code_fences("\n".join(query_lines)),
        explanation=" ".join(explain_lines),
        tips=tips,
        execute_time=execute_time,
    )


# ── Validation ────────────────────────────────────────────────────────────────

def parse_validity(value: str) -> bool:
    return "true" in value.lower() or VALID_AFFIRMATION in value


def parse_score(value: str) -> Optional[int]:
    """Leading integer of value when it lies in 1..100, else None."""
    m = _SCORE_RE.match(value.strip())
    if not m:
        return None
    score = int(m.group(0))
    return score if MIN_SCORE <= score <= MAX_SCORE else None


def parse_issue(line: str) -> Optional[Issue]:
    """
    Parse "- [warning] message | location: x | suggestion: y".
    Severity defaults to info; missing trailing fields stay empty.
    Returns None when no message remains.
    """
    body = _bullet_text(line.strip())
    if body is None:
        body = line.strip()

    severity = "info"
    m = _SEVERITY_RE.search(body)
    if m:
        severity = m.group(1).lower()
        body = body[:m.start()] + body[m.end():]

    parts = body.split("|")
    message = parts[0].strip()
    if not message:
        return None
    location = _strip_label(parts[1], _LOCATION_LABELS) if len(parts) > 1 else ""
    suggestion = _strip_label(parts[2], _SUGGESTION_LABELS) if len(parts) > 2 else ""
    return Issue(type=severity, message=message, location=location, suggestion=suggestion)


def _list_entry(stripped: str) -> Optional[str]:
    entry = _bullet_text(stripped)
    if not entry or entry.lower() in _NONE_PLACEHOLDERS:
        return None
    return entry


def extract_validation(
    text: Optional[str],
    original_query: str,
    ai_response_time: int = 0,
) -> QueryValidation:
    """Extract a QueryValidation; defaults are valid, score 50, optimized = original."""
    is_valid = True
    score = DEFAULT_SCORE
    estimated_time = ""
    issues: list[Issue] = []
    index_usage: list[str] = []
    suggestions: list[str] = []
    optimized_lines: list[str] = []
    plan_lines: list[str] = []
    section = Section.NONE

    for line in (text or "").splitlines():
        stripped = line.strip()

        value = _scalar_value(stripped, VALIDITY_HEADER)
        if value is not None:
            is_valid = parse_validity(value)
            continue
        value = _scalar_value(stripped, SCORE_HEADER)
        if value is not None:
            parsed = parse_score(value)
            if parsed is not None:
                score = parsed
            continue
        value = _scalar_value(stripped, ESTIMATED_TIME_HEADER)
        if value is not None:
            estimated_time = value
            continue

        header = _match_header(stripped, _VALIDATION_HEADERS)
        if header:
            section = header
            continue

        if section is Section.ISSUES:
            if _bullet_text(stripped) is not None:
                issue = parse_issue(stripped)
                if issue:
                    issues.append(issue)
        elif section is Section.INDEXES:
            entry = _list_entry(stripped)
            if entry:
                index_usage.append(entry)
        elif section is Section.SUGGESTIONS:
            entry = _list_entry(stripped)
            if entry:
                suggestions.append(entry)
        elif section is Section.OPTIMIZED:
            if stripped and not _is_fence(stripped) and ALREADY_OPTIMAL_MARKER not in stripped:
                optimized_lines.append(line.rstrip())
        elif section is Section.PLAN:
            if stripped:
                plan_lines.append(stripped)

    optimized = strip_code_fences("\n".join(optimized_lines)) or original_query
    return QueryValidation(
        is_valid=is_valid,
        score=score,
        original_query=original_query,
        optimized_query=optimized,
        issues=issues,
        suggestions=suggestions,
        index_usage=index_usage,
        execution_plan=" ".join(plan_lines),
        estimated_time=estimated_time,
        ai_response_time=ai_response_time,
    )
