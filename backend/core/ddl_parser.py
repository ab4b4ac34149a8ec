"""
DDL parser — turns CREATE TABLE / CREATE INDEX text into the canonical Schema.
Also handles the JSON form of a Schema and regenerates dialect-quoted DDL.

Parsing is lenient: text without recognizable statements yields an empty
Schema, and clauses that match no known pattern are skipped.
"""
import json
import logging
import re
from typing import Optional, Union

from pydantic import ValidationError

from models.schema import Column, DBType, ForeignKey, Index, Schema, Table

logger = logging.getLogger(__name__)

_Q_OPEN = r"[`\"\[]?"
_Q_CLOSE = r"[`\"\]]?"
_IDENT = rf"{_Q_OPEN}(\w+){_Q_CLOSE}"
_QUALIFIED = rf"(?:{_Q_OPEN}\w+{_Q_CLOSE}\s*\.\s*)*{_IDENT}"

_TABLE_HEAD_RE = re.compile(
    rf"CREATE\s+(?:(?:GLOBAL\s+|LOCAL\s+)?(?:TEMPORARY|TEMP)\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?{_QUALIFIED}\s*\(",
    re.IGNORECASE,
)
_INDEX_RE = re.compile(
    rf"CREATE\s+(UNIQUE\s+)?(?:CLUSTERED\s+|NONCLUSTERED\s+)?INDEX\s+(?:IF\s+NOT\s+EXISTS\s+)?{_IDENT}"
    rf"\s+ON\s+{_QUALIFIED}\s*(?:USING\s+(\w+)\s*)?\(([^)]+)\)",
    re.IGNORECASE,
)
_COMMENTS_RE = re.compile(r"('(?:[^']|'')*')|--[^\n]*|/\*.*?\*/", re.DOTALL)

_COLUMN_RE = re.compile(rf"^{_IDENT}\s+(\w+(?:\s*\([^)]*\))?)\s*(.*)$", re.DOTALL)
_DEFAULT_RE = re.compile(r"\bDEFAULT\s+([^\s,]+)", re.IGNORECASE)
_COMMENT_RE = re.compile(r"\bCOMMENT\s+'([^']*)'", re.IGNORECASE)
_INLINE_REF_RE = re.compile(
    rf"\bREFERENCES\s+{_QUALIFIED}\s*\(\s*{_IDENT}\s*\)", re.IGNORECASE
)
_PK_RE = re.compile(r"PRIMARY\s+KEY\s*(?:CLUSTERED\s+|NONCLUSTERED\s+)?\(([^)]+)\)", re.IGNORECASE)
_FK_RE = re.compile(
    rf"(?:CONSTRAINT\s+{_IDENT}\s+)?FOREIGN\s+KEY\s*\(\s*{_IDENT}\s*\)\s*"
    rf"REFERENCES\s+{_QUALIFIED}\s*\(\s*{_IDENT}\s*\)",
    re.IGNORECASE,
)
_UNIQUE_RE = re.compile(
    rf"^(?:CONSTRAINT\s+{_IDENT}\s+)?UNIQUE\s*(?:(?:KEY|INDEX)\b)?\s*(?:{_IDENT}\s*)?\(([^)]+)\)",
    re.IGNORECASE,
)
_KEY_INDEX_RE = re.compile(
    rf"^(?:(FULLTEXT|SPATIAL)\b\s*(?:(?:KEY|INDEX)\b\s*)?|(?:KEY|INDEX)\b\s*)"
    rf"(?:{_IDENT}\s*)?(?:USING\s+(\w+)\s*)?\(([^)]+)\)",
    re.IGNORECASE,
)
_ACTION = r"(CASCADE|SET\s+NULL|SET\s+DEFAULT|RESTRICT|NO\s+ACTION)"
_ON_DELETE_RE = re.compile(rf"ON\s+DELETE\s+{_ACTION}", re.IGNORECASE)
_ON_UPDATE_RE = re.compile(rf"ON\s+UPDATE\s+{_ACTION}", re.IGNORECASE)

_CONSTRAINT_CLAUSE_RE = re.compile(
    r"^(?:(?:PRIMARY\s+KEY|FOREIGN\s+KEY|CONSTRAINT|INDEX|KEY|UNIQUE|FULLTEXT|SPATIAL|CHECK|PERIOD\s+FOR)\b"
    r"|EXCLUDE\s*(?:USING\b|\())",
    re.IGNORECASE,
)
_STRING_LITERAL_RE = re.compile(r"'(?:[^']|'')*'")
_NOT_NULL_RE = re.compile(r"\bNOT\s+NULL\b", re.IGNORECASE)
_INLINE_PK_RE = re.compile(r"\bPRIMARY\s+KEY\b", re.IGNORECASE)
_INLINE_UNIQUE_RE = re.compile(r"\bUNIQUE\b", re.IGNORECASE)
_AUTO_INCREMENT_RE = re.compile(r"\b(?:AUTO_INCREMENT|AUTOINCREMENT|IDENTITY)\b", re.IGNORECASE)


class SchemaDecodeError(ValueError):
    """Raised when a JSON schema document cannot be decoded into a Schema."""


# ── Lexing helpers ────────────────────────────────────────────────────────────

def strip_sql_comments(text: str) -> str:
    """Remove -- and /* */ comments, leaving quoted string literals intact."""
    return _COMMENTS_RE.sub(lambda m: m.group(1) or " ", text)


def _blank_literals(text: str) -> str:
    """Mask the contents of quoted literals, keeping every offset in place."""
    return _STRING_LITERAL_RE.sub(lambda m: "'" + "_" * (len(m.group()) - 2) + "'", text)


def find_closing_paren(text: str, open_idx: int) -> Optional[int]:
    """
    Index of the parenthesis closing the one at open_idx, or None when the
    text ends first. Parentheses inside quoted literals/identifiers are ignored.
    """
    depth = 0
    quote: Optional[str] = None
    closers = {"'": "'", '"': '"', "`": "`"}
    for i in range(open_idx, len(text)):
        ch = text[i]
        if quote:
            if ch == quote:
                quote = None
            continue
        if ch in closers:
            quote = closers[ch]
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
    return None


def split_top_level(body: str, sep: str = ",") -> list[str]:
    """Split on sep only at paren depth zero and outside quotes; drops empty parts."""
    parts: list[str] = []
    depth = 0
    quote: Optional[str] = None
    start = 0
    for i, ch in enumerate(body):
        if quote:
            if ch == quote:
                quote = None
            continue
        if ch in "'\"`":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif ch == sep and depth == 0:
            parts.append(body[start:i])
            start = i + 1
    parts.append(body[start:])
    return [p.strip() for p in parts if p.strip()]


def _dequote(name: str) -> str:
    return name.strip().strip("`\"'[]").strip()


def _column_list(raw: str) -> list[str]:
    """Split "a, `b` DESC" into ["a", "b"] — quotes and ASC/DESC qualifiers removed."""
    cols = []
    for token in split_top_level(raw):
        name = _dequote(token.split()[0])
        if name:
            cols.append(name)
    return cols


def _referential_actions(clause: str) -> tuple[str, str]:
    """Return (on_delete, on_update), each normalized like "SET NULL" or ""."""
    def action(pattern: re.Pattern) -> str:
        m = pattern.search(clause)
        return " ".join(m.group(1).upper().split()) if m else ""
    return action(_ON_DELETE_RE), action(_ON_UPDATE_RE)


def _fk_name(column: str, ref_table: str) -> str:
    return f"fk_{column}_{ref_table}"


# ── Table body ────────────────────────────────────────────────────────────────

class _TableBuilder:
    """Accumulates clauses of one CREATE TABLE body before freezing them into a Table."""

    def __init__(self, name: str):
        self.name = name
        self.columns: list[Column] = []
        self.primary_key: list[str] = []
        self.inline_pk: list[str] = []
        self.foreign_keys: list[ForeignKey] = []
        self.indexes: list[Index] = []
        self.unique_columns: set[str] = set()

    def add_clause(self, clause: str) -> None:
        if _CONSTRAINT_CLAUSE_RE.match(clause):
            if not self._add_constraint(clause):
                logger.debug("Skipping unrecognized constraint in %s: %s", self.name, clause[:80])
            return
        if not self._add_column(clause):
            logger.debug("Skipping unrecognized clause in %s: %s", self.name, clause[:80])

    def _add_column(self, clause: str) -> bool:
        m = _COLUMN_RE.match(clause)
        if not m:
            return False
        name, col_type, rest = m.group(1), m.group(2), m.group(3)
        # Keyword checks run on the text with literal contents masked out.
        bare = _blank_literals(rest)

        default = ""
        dm = _DEFAULT_RE.search(bare)
        if dm:
            default = rest[dm.start(1):dm.end(1)]
        comment = ""
        cm = _COMMENT_RE.search(bare)
        if cm:
            comment = rest[cm.start(1):cm.end(1)]

        is_pk = bool(_INLINE_PK_RE.search(bare))
        if is_pk:
            self.inline_pk.append(name)

        ref = _INLINE_REF_RE.search(bare)
        if ref:
            on_delete, on_update = _referential_actions(bare[ref.end():])
            self.foreign_keys.append(ForeignKey(
                name=_fk_name(name, ref.group(1)),
                column=name,
                ref_table=ref.group(1),
                ref_column=ref.group(2),
                on_delete=on_delete,
                on_update=on_update,
            ))

        self.columns.append(Column(
            name=name,
            type=col_type,
            nullable=not _NOT_NULL_RE.search(bare),
            default=default,
            comment=comment,
            is_pk=is_pk,
            is_unique=bool(_INLINE_UNIQUE_RE.search(bare)),
            is_auto_incr=bool(_AUTO_INCREMENT_RE.search(bare)) or "SERIAL" in col_type.upper(),
        ))
        return True

    def _add_constraint(self, clause: str) -> bool:
        fk = _FK_RE.search(clause)
        if fk:
            constraint_name, column, ref_table, ref_column = fk.groups()
            on_delete, on_update = _referential_actions(clause[fk.end():])
            self.foreign_keys.append(ForeignKey(
                name=constraint_name or _fk_name(column, ref_table),
                column=column,
                ref_table=ref_table,
                ref_column=ref_column,
                on_delete=on_delete,
                on_update=on_update,
            ))
            return True

        pk = _PK_RE.search(clause)
        if pk:
            self.primary_key = _column_list(pk.group(1))
            return True

        unique = _UNIQUE_RE.match(clause)
        if unique:
            constraint_name, index_name, raw_cols = unique.groups()
            index_name = index_name or constraint_name
            cols = _column_list(raw_cols)
            if len(cols) == 1:
                self.unique_columns.add(cols[0].lower())
            if index_name:
                self.indexes.append(Index(name=index_name, columns=cols, is_unique=True, type="BTREE"))
            return True

        key = _KEY_INDEX_RE.match(clause)
        if key:
            kind, index_name, using, raw_cols = key.groups()
            cols = _column_list(raw_cols)
            self.indexes.append(Index(
                name=index_name or cols[0],
                columns=cols,
                is_unique=False,
                type=(kind or using or "BTREE").upper(),
            ))
            return True
        return False

    def build(self) -> Table:
        primary_key = self.primary_key or self.inline_pk
        pk_names = {c.lower() for c in primary_key}
        fk_names = {fk.column.lower() for fk in self.foreign_keys}

        columns = []
        for col in self.columns:
            key = col.name.lower()
            update = {}
            if key in pk_names and not col.is_pk:
                update["is_pk"] = True
            if key in pk_names and col.nullable:
                update["nullable"] = False
            if key in fk_names and not col.is_fk:
                update["is_fk"] = True
            if key in self.unique_columns and not col.is_unique:
                update["is_unique"] = True
            columns.append(col.model_copy(update=update) if update else col)

        return Table(
            name=self.name,
            columns=columns,
            primary_key=primary_key,
            foreign_keys=self.foreign_keys,
            indexes=self.indexes,
        )


# ── Public API ────────────────────────────────────────────────────────────────

def parse_ddl(ddl: str, db_type: Union[DBType, str] = DBType.MYSQL) -> Schema:
    """
    Parse CREATE TABLE and CREATE INDEX statements into a Schema.
    Never raises on malformed text.
    """
    text = strip_sql_comments(ddl or "")
    builders: list[_TableBuilder] = []
    seen: set[str] = set()

    pos = 0
    while True:
        head = _TABLE_HEAD_RE.search(text, pos)
        if not head:
            break
        open_idx = head.end() - 1
        close_idx = find_closing_paren(text, open_idx)
        body_end = close_idx if close_idx is not None else len(text)
        body = text[open_idx + 1:body_end]
        pos = body_end

        name = head.group(1)
        if name.lower() in seen:
            logger.warning("Duplicate CREATE TABLE for %s — keeping the first definition", name)
            continue
        seen.add(name.lower())

        builder = _TableBuilder(name)
        for clause in split_top_level(body):
            builder.add_clause(clause)
        builders.append(builder)

    tables = [b.build() for b in builders]
    _attach_indexes(text, tables)
    logger.info("Parsed %d tables from DDL (%d chars)", len(tables), len(ddl or ""))
    return Schema(db_type=DBType(db_type), tables=tables)


def _attach_indexes(text: str, tables: list[Table]) -> None:
    """Scan the whole document for CREATE INDEX and attach each to its table, in place."""
    by_name = {t.name.lower(): i for i, t in enumerate(tables)}
    for m in _INDEX_RE.finditer(text):
        unique, index_name, table_name, using, raw_cols = m.groups()
        i = by_name.get(table_name.lower())
        if i is None:
            logger.debug("Index %s references unknown table %s", index_name, table_name)
            continue
        index = Index(
            name=index_name,
            columns=_column_list(raw_cols),
            is_unique=bool(unique and unique.strip()),
            type=(using or "BTREE").upper(),
        )
        table = tables[i]
        tables[i] = table.model_copy(update={"indexes": [*table.indexes, index]})


def parse_json(data: Union[str, bytes]) -> Schema:
    """Decode the JSON form of a Schema. Raises SchemaDecodeError on bad input."""
    try:
        return Schema.model_validate_json(data)
    except ValidationError as e:
        raise SchemaDecodeError(f"Invalid schema document: {e}") from e


# Fields dropped from the JSON form when empty.
_OMIT_EMPTY = {"columns": ("default", "comment"), "foreign_keys": ("on_delete", "on_update")}


def schema_to_dict(schema: Schema) -> dict:
    data = schema.model_dump(mode="json")
    for table in data["tables"]:
        for section, fields in _OMIT_EMPTY.items():
            for item in table[section]:
                for field in fields:
                    if not item.get(field):
                        item.pop(field, None)
    return data


def schema_to_json(schema: Schema) -> str:
    return json.dumps(schema_to_dict(schema), indent=2, ensure_ascii=False)


# ── DDL generation ────────────────────────────────────────────────────────────

def quote_identifier(name: str, db_type: DBType) -> str:
    if db_type == DBType.MYSQL:
        return f"`{name}`"
    if db_type == DBType.POSTGRESQL:
        return f'"{name}"'
    if db_type == DBType.SQLSERVER:
        return f"[{name}]"
    if db_type == DBType.ORACLE:
        return f'"{name.upper()}"'
    return name


def generate_ddl(schema: Schema) -> str:
    """Render a Schema back into dialect-quoted CREATE TABLE / CREATE INDEX statements."""
    q = lambda n: quote_identifier(n, schema.db_type)  # noqa: E731
    out = []
    for table in schema.tables:
        defs = []
        for col in table.columns:
            col_def = f"  {q(col.name)} {col.type}"
            if not col.nullable:
                col_def += " NOT NULL"
            if col.is_auto_incr:
                if schema.db_type == DBType.MYSQL:
                    col_def += " AUTO_INCREMENT"
                elif schema.db_type == DBType.SQLSERVER:
                    col_def += " IDENTITY(1,1)"
            if col.default:
                col_def += f" DEFAULT {col.default}"
            if col.is_unique and not col.is_pk:
                col_def += " UNIQUE"
            if col.comment and schema.db_type == DBType.MYSQL:
                col_def += " COMMENT '" + col.comment.replace("'", "''") + "'"
            defs.append(col_def)

        if table.primary_key:
            defs.append(f"  PRIMARY KEY ({', '.join(q(c) for c in table.primary_key)})")

        for fk in table.foreign_keys:
            fk_def = (
                f"  CONSTRAINT {q(fk.name)} FOREIGN KEY ({q(fk.column)}) "
                f"REFERENCES {q(fk.ref_table)}({q(fk.ref_column)})"
            )
            if fk.on_delete:
                fk_def += f" ON DELETE {fk.on_delete}"
            if fk.on_update:
                fk_def += f" ON UPDATE {fk.on_update}"
            defs.append(fk_def)

        out.append(f"CREATE TABLE {q(table.name)} (\n" + ",\n".join(defs) + "\n);\n")

        for idx in table.indexes:
            if idx.name == "PRIMARY":
                continue
            unique = "UNIQUE " if idx.is_unique else ""
            out.append(
                f"CREATE {unique}INDEX {q(idx.name)} ON {q(table.name)} "
                f"({', '.join(q(c) for c in idx.columns)});\n"
            )
        out.append("\n")
    return "".join(out)
