"""
SQL Genius command-line front end.

Usage:
    sql-genius --db mysql --host localhost --user root --password xxx --database shop
    sql-genius --schema schema.json --prompt "top 10 customers by revenue"
    sql-genius --ddl "CREATE TABLE ..." -i
"""
import argparse
import json
import logging
import re
import sys
from pathlib import Path
from typing import Optional

from config import settings
from core.db_connector import extract_schema
from core.ddl_parser import SchemaDecodeError, parse_ddl, parse_json
from core.introspection import supported_db_types
from core.query_generator import QueryGenerator
from integrations.llm_factory import PROVIDERS, get_llm_client
from models.connection import ConnectionRequest
from models.query import QUERY_TYPES
from models.schema import DBType, Schema

logger = logging.getLogger("sql_genius.cli")

RULE = "─" * 60

# Keywords that start a new line in format_sql, longest first so "LEFT JOIN" wins over "JOIN".
_BREAK_KEYWORDS = sorted(
    [
        "SELECT", "FROM", "WHERE", "JOIN", "LEFT JOIN", "RIGHT JOIN", "INNER JOIN",
        "ORDER BY", "GROUP BY", "HAVING", "LIMIT", "OFFSET", "INSERT INTO", "VALUES",
        "UPDATE", "SET", "DELETE FROM", "CREATE TABLE", "ALTER TABLE", "DROP TABLE",
        "CREATE INDEX",
    ],
    key=len,
    reverse=True,
)
_BREAK_RE = re.compile(
    r"\s+(" + "|".join(kw.replace(" ", r"\s+") for kw in _BREAK_KEYWORDS) + r")\s+",
    re.IGNORECASE,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sql-genius",
        description="SQL Genius - AI-assisted SQL generation and optimization",
    )
    source = parser.add_argument_group("schema source")
    source.add_argument("--schema", metavar="FILE", help="Schema file (JSON or DDL)")
    source.add_argument("--ddl", help="DDL text")
    source.add_argument("--db", choices=supported_db_types(), help="Live database type")
    source.add_argument("--host", default="localhost", help="Database host")
    source.add_argument("--port", type=int, help="Database port (engine default when omitted)")
    source.add_argument("--user", default="", help="Database user")
    source.add_argument("--password", default="", help="Database password")
    source.add_argument("--database", default="", help="Database name (Oracle: service name)")

    ai = parser.add_argument_group("AI provider")
    ai.add_argument("--ai", choices=PROVIDERS, default=None, help="AI provider (default: AI_PROVIDER)")
    ai.add_argument("--model", help="Model name")
    ai.add_argument("--groq-key", help="Groq API key (default: GROQ_API_KEY)")

    action = parser.add_argument_group("action")
    action.add_argument("--prompt", help="Natural-language request to turn into SQL")
    action.add_argument("--type", default="SELECT", type=str.upper, choices=QUERY_TYPES, help="Query type")
    action.add_argument("--optimize", metavar="QUERY", help="Optimize an existing query")
    action.add_argument("--validate", metavar="QUERY", help="Validate and score an existing query")
    action.add_argument("-i", "--interactive", action="store_true", help="Interactive mode")

    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="Logging level")
    return parser


def load_schema(args: argparse.Namespace) -> Optional[Schema]:
    """Resolve the schema from --db, --schema or --ddl, in that order. None when none is given."""
    if args.db:
        req = ConnectionRequest(
            db_type=args.db,
            host=args.host,
            port=args.port,
            database=args.database,
            username=args.user,
            password=args.password,
        )
        schema = extract_schema(req)
        print(f"Connected to {req.db_type.value} database {req.database}@{req.host}")
        return schema

    if args.schema:
        path = Path(args.schema)
        content = path.read_text(encoding="utf-8")
        if path.suffix.lower() == ".json" or content.lstrip().startswith("{"):
            return parse_json(content)
        return parse_ddl(content, DBType(settings.DEFAULT_DB_TYPE))

    if args.ddl:
        return parse_ddl(args.ddl, DBType(settings.DEFAULT_DB_TYPE))

    return None


def format_sql(sql: str) -> str:
    """Break a query onto one line per major clause, indented for terminal output."""
    formatted = _BREAK_RE.sub(lambda m: "\n" + m.group(1) + " ", sql)
    return "\n".join("   " + line.strip() for line in formatted.splitlines() if line.strip())


def print_schema(schema: Schema) -> None:
    print(f"\nDatabase: {schema.database or '-'} ({schema.db_type.value})")
    print("─" * 50)
    for table in schema.tables:
        print(f"\nTable: {table.name}")
        for col in table.columns:
            flags = ""
            if col.is_pk:
                flags += " [PK]"
            if col.is_fk:
                flags += " [FK]"
            if col.is_unique:
                flags += " [UNIQUE]"
            nullable = "NULL" if col.nullable else "NOT NULL"
            print(f"   ├─ {col.name} {col.type} {nullable}{flags}")
        if table.indexes:
            print("   └─ indexes:")
            for idx in table.indexes:
                unique = " (UNIQUE)" if idx.is_unique else ""
                print(f"      • {idx.name} ({', '.join(idx.columns)}){unique}")


def print_response(resp) -> None:
    print(RULE)
    print("Query:")
    print(format_sql(resp.query))
    if resp.explanation:
        print("\nExplanation:")
        print("   " + resp.explanation)
    if resp.tips:
        print("\nTips:")
        for tip in resp.tips:
            print("   • " + tip)
    print(f"\nAI time: {resp.execute_time} ms")
    print(RULE)


def print_validation(v) -> None:
    print(RULE)
    print(f"Valid: {v.is_valid}    Score: {v.score}/100")
    if v.issues:
        print("\nIssues:")
        for issue in v.issues:
            line = f"   [{issue.type}] {issue.message}"
            if issue.location:
                line += f" (at {issue.location})"
            print(line)
            if issue.suggestion:
                print(f"      -> {issue.suggestion}")
    if v.index_usage:
        print("\nIndex usage:")
        for entry in v.index_usage:
            print("   • " + entry)
    if v.optimized_query and v.optimized_query != v.original_query:
        print("\nOptimized query:")
        print(format_sql(v.optimized_query))
    if v.execution_plan:
        print("\nExecution plan:\n   " + v.execution_plan)
    if v.estimated_time:
        print("Estimated time: " + v.estimated_time)
    if v.suggestions:
        print("\nSuggestions:")
        for s in v.suggestions:
            print("   • " + s)
    print(f"\nAI time: {v.ai_response_time} ms")
    print(RULE)


def handle_command(generator: QueryGenerator, line: str, query_type: str) -> str:
    """Run one /command; returns the (possibly changed) current query type."""
    parts = line.split(maxsplit=1)
    command = parts[0].lower()
    arg = parts[1].strip() if len(parts) > 1 else ""

    if command == "/type":
        if arg.upper() not in QUERY_TYPES:
            print(f"Usage: /type {{{'|'.join(QUERY_TYPES)}}}")
            return query_type
        print(f"Switched to {arg.upper()} mode")
        return arg.upper()
    # /select, /insert, ... shortcuts
    if command[1:].upper() in QUERY_TYPES:
        print(f"Switched to {command[1:].upper()} mode")
        return command[1:].upper()

    if command == "/schema":
        print_schema(generator.schema)
    elif command in ("/optimize", "/validate", "/explain"):
        if not arg:
            print(f"Usage: {command} <query>")
            return query_type
        try:
            if command == "/optimize":
                print_response(generator.optimize(arg))
            elif command == "/validate":
                print_validation(generator.validate(arg))
            else:
                print(RULE)
                print(generator.explain(arg))
                print(RULE)
        except RuntimeError as e:
            print(f"Error: {e}")
    else:
        print(f"Unknown command: {command}")
    return query_type


def run_interactive(generator: QueryGenerator, query_type: str = "SELECT") -> None:
    print("Interactive mode (exit with /quit)")
    print("Commands: /type <TYPE>, /select … /create, /schema, /optimize <q>, /validate <q>, /explain <q>")
    while True:
        try:
            line = input(f"[{query_type}] > ").strip()
        except EOFError:
            break
        if not line:
            continue
        if line.lower() in ("/quit", "/exit", "quit", "exit"):
            break
        if line.startswith("/"):
            query_type = handle_command(generator, line, query_type)
            continue
        try:
            print_response(generator.generate(line, query_type))
        except RuntimeError as e:
            print(f"Error: {e}")
    print("Bye!")


def run_single(generator: QueryGenerator, args: argparse.Namespace) -> None:
    """Non-interactive actions print their result as JSON."""
    if args.optimize:
        result = generator.optimize(args.optimize)
    elif args.validate:
        result = generator.validate(args.validate)
    else:
        result = generator.generate(args.prompt, args.type)
    print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    try:
        schema = load_schema(args)
    except (OSError, SchemaDecodeError) as e:
        print(f"Could not load schema: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("Schema extraction failed")
        print(f"Could not load schema: {e}", file=sys.stderr)
        return 1

    if schema is None:
        build_parser().print_help()
        return 0

    try:
        llm = get_llm_client(args.ai, args.model, api_key=args.groq_key)
    except ValueError as e:
        print(f"Could not initialise AI provider: {e}", file=sys.stderr)
        return 1

    ok, detail = llm.is_healthy()
    if ok:
        print(f"AI provider ready: {llm.name} ({detail})")
    else:
        print(f"AI provider unreachable, continuing anyway: {llm.name} ({detail})")

    print(f"Loaded {len(schema.tables)} tables")
    for table in schema.tables:
        print(f"   - {table.name} ({len(table.columns)} columns)")

    generator = QueryGenerator(llm, schema)
    if args.interactive or not (args.prompt or args.optimize or args.validate):
        run_interactive(generator, args.type)
        return 0

    try:
        run_single(generator, args)
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
