"""
Live-database introspection — one Introspector per dialect.

Each dialect supplies its own catalog queries and row-mapping rules; all of
them produce the same canonical Column / Index / ForeignKey / Table records
the DDL parser produces, so downstream code never branches on dialect.
Tables are extracted one at a time with four sequential queries.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping

from sqlalchemy import text

from models.schema import Column, DBType, ForeignKey, Index, Schema, Table

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]


def _s(value: Any) -> str:
    return "" if value is None else str(value)


def _truthy(value: Any) -> bool:
    """Catalog booleans arrive as bool, 0/1 or 'Y'/'N' depending on the driver."""
    if isinstance(value, str):
        return value.strip().upper() in ("Y", "YES", "1", "TRUE", "T")
    return bool(value)


class Introspector(ABC):
    """Catalog queries plus row → canonical entity mapping for one dialect."""

    db_type: DBType

    tables_query: str
    columns_query: str
    indexes_query: str
    foreign_keys_query: str
    primary_keys_query: str

    # ── Query parameters ──────────────────────────────────────────────────────

    def params(self, table: str, database: str) -> dict:
        return {"table": table, "database": database}

    def tables_params(self, database: str) -> dict:
        return {"database": database}

    # ── Row mapping ───────────────────────────────────────────────────────────

    @abstractmethod
    def map_column(self, row: Row) -> Column:
        ...

    def index_entry(self, row: Row) -> tuple[str, str, bool, str]:
        """(index_name, column_name, is_unique, index_type) for one index row."""
        return (
            _s(row["index_name"]),
            _s(row["column_name"]),
            _truthy(row["is_unique"]),
            _s(row["index_type"]),
        )

    def map_foreign_key(self, row: Row) -> ForeignKey:
        return ForeignKey(
            name=_s(row["constraint_name"]),
            column=_s(row["column_name"]),
            ref_table=_s(row["ref_table"]),
            ref_column=_s(row["ref_column"]),
            on_delete=_normalize_rule(row.get("on_delete")),
            on_update=_normalize_rule(row.get("on_update")),
        )

    # ── Folding ───────────────────────────────────────────────────────────────

    def fold_indexes(self, rows: list[Row]) -> list[Index]:
        """Group per-column index rows by index name, keeping first-seen order."""
        folded: dict[str, dict] = {}
        for row in rows:
            name, column, is_unique, index_type = self.index_entry(row)
            entry = folded.get(name)
            if entry is None:
                folded[name] = {"name": name, "columns": [column], "is_unique": is_unique, "type": index_type}
            else:
                entry["columns"].append(column)
        return [Index(**entry) for entry in folded.values()]

    def fold_primary_key(self, rows: list[Row]) -> list[str]:
        """Primary-key column names ordered by the catalog ordinal, not row order."""
        ordered = sorted(rows, key=lambda r: int(r["ordinal"]))
        return [_s(r["column_name"]) for r in ordered]

    def build_table(
        self,
        name: str,
        column_rows: list[Row],
        index_rows: list[Row],
        fk_rows: list[Row],
        pk_rows: list[Row],
    ) -> Table:
        columns = [self.map_column(r) for r in column_rows]
        foreign_keys = [self.map_foreign_key(r) for r in fk_rows]
        primary_key = self.fold_primary_key(pk_rows)

        pk_names = {c.lower() for c in primary_key}
        fk_names = {fk.column.lower() for fk in foreign_keys}
        converged = []
        for col in columns:
            update = {}
            if col.name.lower() in pk_names and not col.is_pk:
                update["is_pk"] = True
            if col.name.lower() in fk_names and not col.is_fk:
                update["is_fk"] = True
            converged.append(col.model_copy(update=update) if update else col)

        return Table(
            name=name,
            columns=converged,
            primary_key=primary_key,
            foreign_keys=foreign_keys,
            indexes=self.fold_indexes(index_rows),
        )

    # ── Extraction ────────────────────────────────────────────────────────────

    def list_tables(self, conn, database: str) -> list[str]:
        rows = _fetch(conn, self.tables_query, self.tables_params(database))
        return [_s(r["table_name"]) for r in rows]

    def extract_table(self, conn, table: str, database: str) -> Table:
        params = self.params(table, database)
        column_rows = _fetch(conn, self.columns_query, params)
        index_rows = _fetch(conn, self.indexes_query, params)
        fk_rows = _fetch(conn, self.foreign_keys_query, params)
        pk_rows = _fetch(conn, self.primary_keys_query, params)
        return self.build_table(table, column_rows, index_rows, fk_rows, pk_rows)

    def extract_schema(self, conn, database: str) -> Schema:
        table_names = self.list_tables(conn, database)
        logger.info("Discovered %d tables in %s (%s)", len(table_names), database, self.db_type.value)
        tables = [self.extract_table(conn, name, database) for name in table_names]
        return Schema(database=database, db_type=self.db_type, tables=tables)


def _fetch(conn, sql: str, params: dict) -> list[Row]:
    return list(conn.execute(text(sql), params).mappings().all())


def _normalize_rule(value: Any) -> str:
    """'NO_ACTION' / 'no action' / None → 'NO ACTION' / ''."""
    return " ".join(_s(value).replace("_", " ").upper().split())


# ── MySQL ─────────────────────────────────────────────────────────────────────

class MySQLIntrospector(Introspector):
    """COLUMN_KEY carries PK/FK/UNIQUE in one field; EXTRA marks auto_increment."""

    db_type = DBType.MYSQL

    tables_query = """
        SELECT TABLE_NAME AS table_name
        FROM INFORMATION_SCHEMA.TABLES
        WHERE TABLE_SCHEMA = :database AND TABLE_TYPE = 'BASE TABLE'
        ORDER BY TABLE_NAME"""

    columns_query = """
        SELECT COLUMN_NAME AS column_name, COLUMN_TYPE AS data_type, IS_NULLABLE AS is_nullable,
               COLUMN_DEFAULT AS column_default, COLUMN_KEY AS column_key, EXTRA AS extra,
               COLUMN_COMMENT AS column_comment
        FROM INFORMATION_SCHEMA.COLUMNS
        WHERE TABLE_SCHEMA = :database AND TABLE_NAME = :table
        ORDER BY ORDINAL_POSITION"""

    indexes_query = """
        SELECT INDEX_NAME AS index_name, COLUMN_NAME AS column_name,
               CASE WHEN NON_UNIQUE = 0 THEN 1 ELSE 0 END AS is_unique, INDEX_TYPE AS index_type
        FROM INFORMATION_SCHEMA.STATISTICS
        WHERE TABLE_SCHEMA = :database AND TABLE_NAME = :table
        ORDER BY INDEX_NAME, SEQ_IN_INDEX"""

    foreign_keys_query = """
        SELECT k.CONSTRAINT_NAME AS constraint_name, k.COLUMN_NAME AS column_name,
               k.REFERENCED_TABLE_NAME AS ref_table, k.REFERENCED_COLUMN_NAME AS ref_column,
               r.DELETE_RULE AS on_delete, r.UPDATE_RULE AS on_update
        FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE k
        LEFT JOIN INFORMATION_SCHEMA.REFERENTIAL_CONSTRAINTS r
               ON r.CONSTRAINT_SCHEMA = k.TABLE_SCHEMA AND r.CONSTRAINT_NAME = k.CONSTRAINT_NAME
        WHERE k.TABLE_SCHEMA = :database AND k.TABLE_NAME = :table
          AND k.REFERENCED_TABLE_NAME IS NOT NULL
        ORDER BY k.CONSTRAINT_NAME, k.ORDINAL_POSITION"""

    primary_keys_query = """
        SELECT COLUMN_NAME AS column_name, ORDINAL_POSITION AS ordinal
        FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE
        WHERE TABLE_SCHEMA = :database AND TABLE_NAME = :table AND CONSTRAINT_NAME = 'PRIMARY'"""

    def map_column(self, row: Row) -> Column:
        key = _s(row["column_key"]).upper()
        return Column(
            name=_s(row["column_name"]),
            type=_s(row["data_type"]),
            nullable=_s(row["is_nullable"]).upper() == "YES",
            default=_s(row["column_default"]),
            comment=_s(row["column_comment"]),
            is_pk=key == "PRI",
            is_fk=key == "MUL",
            is_unique=key == "UNI",
            is_auto_incr="auto_increment" in _s(row["extra"]).lower(),
        )


# ── PostgreSQL ────────────────────────────────────────────────────────────────

_PG_CONSTRAINT_EXISTS = """
            EXISTS (SELECT 1 FROM information_schema.table_constraints tc
                    JOIN information_schema.key_column_usage kcu
                      ON tc.constraint_name = kcu.constraint_name AND tc.table_schema = kcu.table_schema
                    WHERE tc.table_schema = c.table_schema AND tc.table_name = c.table_name
                      AND kcu.column_name = c.column_name AND tc.constraint_type = '{kind}')"""

_SERIAL_TYPES = ("serial", "bigserial", "smallserial", "serial4", "serial8", "serial2")


class PostgresIntrospector(Introspector):
    """PK/FK/UNIQUE via correlated constraint lookups; auto-increment via nextval/serial/identity."""

    db_type = DBType.POSTGRESQL
    schema_name = "public"

    tables_query = """
        SELECT table_name
        FROM information_schema.tables
        WHERE table_schema = :schema AND table_type = 'BASE TABLE'
        ORDER BY table_name"""

    columns_query = f"""
        SELECT c.column_name, c.data_type, c.is_nullable, c.column_default, c.is_identity,
               {_PG_CONSTRAINT_EXISTS.format(kind='PRIMARY KEY')} AS is_pk,
               {_PG_CONSTRAINT_EXISTS.format(kind='FOREIGN KEY')} AS is_fk,
               {_PG_CONSTRAINT_EXISTS.format(kind='UNIQUE')} AS is_unique,
               col_description((quote_ident(c.table_schema) || '.' || quote_ident(c.table_name))::regclass::oid,
                               c.ordinal_position) AS column_comment
        FROM information_schema.columns c
        WHERE c.table_schema = :schema AND c.table_name = :table
        ORDER BY c.ordinal_position"""

    indexes_query = """
        SELECT i.relname AS index_name, a.attname AS column_name,
               ix.indisunique AS is_unique, am.amname AS index_type
        FROM pg_class t
        JOIN pg_namespace n ON n.oid = t.relnamespace
        JOIN pg_index ix ON t.oid = ix.indrelid
        JOIN pg_class i ON i.oid = ix.indexrelid
        JOIN pg_am am ON i.relam = am.oid
        JOIN LATERAL unnest(ix.indkey) WITH ORDINALITY AS k(attnum, pos) ON true
        JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = k.attnum
        WHERE t.relname = :table AND n.nspname = :schema AND t.relkind = 'r'
        ORDER BY i.relname, k.pos"""

    foreign_keys_query = """
        SELECT tc.constraint_name, kcu.column_name,
               ccu.table_name AS ref_table, ccu.column_name AS ref_column,
               rc.delete_rule AS on_delete, rc.update_rule AS on_update
        FROM information_schema.table_constraints tc
        JOIN information_schema.key_column_usage kcu
          ON tc.constraint_name = kcu.constraint_name AND tc.table_schema = kcu.table_schema
        JOIN information_schema.constraint_column_usage ccu
          ON ccu.constraint_name = tc.constraint_name AND ccu.constraint_schema = tc.table_schema
        JOIN information_schema.referential_constraints rc
          ON rc.constraint_name = tc.constraint_name AND rc.constraint_schema = tc.table_schema
        WHERE tc.table_name = :table AND tc.table_schema = :schema
          AND tc.constraint_type = 'FOREIGN KEY'
        ORDER BY tc.constraint_name, kcu.ordinal_position"""

    primary_keys_query = """
        SELECT kcu.column_name, kcu.ordinal_position AS ordinal
        FROM information_schema.table_constraints tc
        JOIN information_schema.key_column_usage kcu
          ON tc.constraint_name = kcu.constraint_name AND tc.table_schema = kcu.table_schema
        WHERE tc.table_name = :table AND tc.table_schema = :schema
          AND tc.constraint_type = 'PRIMARY KEY'"""

    def params(self, table: str, database: str) -> dict:
        return {"table": table, "schema": self.schema_name}

    def tables_params(self, database: str) -> dict:
        return {"schema": self.schema_name}

    def map_column(self, row: Row) -> Column:
        data_type = _s(row["data_type"])
        default = _s(row["column_default"])
        return Column(
            name=_s(row["column_name"]),
            type=data_type,
            nullable=_s(row["is_nullable"]).upper() == "YES",
            default=default,
            comment=_s(row.get("column_comment")),
            is_pk=_truthy(row["is_pk"]),
            is_fk=_truthy(row["is_fk"]),
            is_unique=_truthy(row["is_unique"]),
            is_auto_incr=(
                "nextval" in default.lower()
                or data_type.lower() in _SERIAL_TYPES
                or _truthy(row.get("is_identity"))
            ),
        )


# ── Oracle ────────────────────────────────────────────────────────────────────

_ORA_CONSTRAINT_FLAG = """
            NVL((SELECT 'Y' FROM user_cons_columns ucc
                 JOIN user_constraints uc ON ucc.constraint_name = uc.constraint_name
                 WHERE uc.constraint_type = '{kind}' AND ucc.table_name = c.table_name
                   AND ucc.column_name = c.column_name AND ROWNUM = 1), 'N')"""


class OracleIntrospector(Introspector):
    """'Y'/'N' nullability and constraint flags; identity columns; upper-cased names."""

    db_type = DBType.ORACLE

    tables_query = "SELECT table_name FROM user_tables ORDER BY table_name"

    columns_query = f"""
        SELECT c.column_name, c.data_type, c.nullable AS is_nullable, c.data_default AS column_default,
               c.identity_column AS is_identity, cc.comments AS column_comment,
               {_ORA_CONSTRAINT_FLAG.format(kind='P')} AS is_pk,
               {_ORA_CONSTRAINT_FLAG.format(kind='R')} AS is_fk,
               {_ORA_CONSTRAINT_FLAG.format(kind='U')} AS is_unique
        FROM user_tab_columns c
        LEFT JOIN user_col_comments cc
          ON cc.table_name = c.table_name AND cc.column_name = c.column_name
        WHERE c.table_name = :table
        ORDER BY c.column_id"""

    indexes_query = """
        SELECT ui.index_name, uic.column_name,
               CASE WHEN ui.uniqueness = 'UNIQUE' THEN 1 ELSE 0 END AS is_unique,
               ui.index_type
        FROM user_indexes ui
        JOIN user_ind_columns uic ON ui.index_name = uic.index_name
        WHERE ui.table_name = :table
        ORDER BY ui.index_name, uic.column_position"""

    foreign_keys_query = """
        SELECT uc.constraint_name, ucc.column_name,
               rcc.table_name AS ref_table, rcc.column_name AS ref_column,
               uc.delete_rule AS on_delete
        FROM user_constraints uc
        JOIN user_cons_columns ucc ON uc.constraint_name = ucc.constraint_name
        LEFT JOIN user_cons_columns rcc
          ON rcc.constraint_name = uc.r_constraint_name AND rcc.position = ucc.position
        WHERE uc.table_name = :table AND uc.constraint_type = 'R'
        ORDER BY uc.constraint_name, ucc.position"""

    primary_keys_query = """
        SELECT ucc.column_name, ucc.position AS ordinal
        FROM user_constraints uc
        JOIN user_cons_columns ucc ON uc.constraint_name = ucc.constraint_name
        WHERE uc.table_name = :table AND uc.constraint_type = 'P'"""

    def params(self, table: str, database: str) -> dict:
        return {"table": table.upper()}

    def tables_params(self, database: str) -> dict:
        return {}

    def map_column(self, row: Row) -> Column:
        return Column(
            name=_s(row["column_name"]),
            type=_s(row["data_type"]),
            nullable=_s(row["is_nullable"]).upper() == "Y",
            default=_s(row["column_default"]).strip(),
            comment=_s(row.get("column_comment")),
            is_pk=_s(row["is_pk"]).upper() == "Y",
            is_fk=_s(row["is_fk"]).upper() == "Y",
            is_unique=_s(row["is_unique"]).upper() == "Y",
            is_auto_incr=_s(row.get("is_identity")).upper() in ("YES", "Y"),
        )


# ── SQL Server ────────────────────────────────────────────────────────────────

_MSSQL_CONSTRAINT_EXISTS = """
            CASE WHEN EXISTS (
                SELECT 1 FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
                JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE ku ON tc.CONSTRAINT_NAME = ku.CONSTRAINT_NAME
                WHERE tc.TABLE_NAME = c.TABLE_NAME AND ku.COLUMN_NAME = c.COLUMN_NAME
                  AND tc.CONSTRAINT_TYPE = '{kind}') THEN 1 ELSE 0 END"""


class SQLServerIntrospector(Introspector):
    """Correlated constraint lookups; identity via COLUMNPROPERTY."""

    db_type = DBType.SQLSERVER

    tables_query = """
        SELECT TABLE_NAME AS table_name
        FROM INFORMATION_SCHEMA.TABLES
        WHERE TABLE_TYPE = 'BASE TABLE' AND TABLE_CATALOG = DB_NAME()
        ORDER BY TABLE_NAME"""

    columns_query = f"""
        SELECT c.COLUMN_NAME AS column_name, c.DATA_TYPE AS data_type, c.IS_NULLABLE AS is_nullable,
               c.COLUMN_DEFAULT AS column_default,
               {_MSSQL_CONSTRAINT_EXISTS.format(kind='PRIMARY KEY')} AS is_pk,
               {_MSSQL_CONSTRAINT_EXISTS.format(kind='FOREIGN KEY')} AS is_fk,
               {_MSSQL_CONSTRAINT_EXISTS.format(kind='UNIQUE')} AS is_unique,
               COLUMNPROPERTY(OBJECT_ID(c.TABLE_SCHEMA + '.' + c.TABLE_NAME), c.COLUMN_NAME, 'IsIdentity')
                   AS is_identity
        FROM INFORMATION_SCHEMA.COLUMNS c
        WHERE c.TABLE_NAME = :table
        ORDER BY c.ORDINAL_POSITION"""

    indexes_query = """
        SELECT i.name AS index_name, c.name AS column_name,
               i.is_unique, i.type_desc AS index_type
        FROM sys.indexes i
        JOIN sys.index_columns ic ON i.object_id = ic.object_id AND i.index_id = ic.index_id
        JOIN sys.columns c ON ic.object_id = c.object_id AND ic.column_id = c.column_id
        WHERE i.object_id = OBJECT_ID(:table) AND i.name IS NOT NULL
        ORDER BY i.name, ic.key_ordinal"""

    foreign_keys_query = """
        SELECT fk.name AS constraint_name,
               COL_NAME(fkc.parent_object_id, fkc.parent_column_id) AS column_name,
               OBJECT_NAME(fkc.referenced_object_id) AS ref_table,
               COL_NAME(fkc.referenced_object_id, fkc.referenced_column_id) AS ref_column,
               fk.delete_referential_action_desc AS on_delete,
               fk.update_referential_action_desc AS on_update
        FROM sys.foreign_keys fk
        JOIN sys.foreign_key_columns fkc ON fk.object_id = fkc.constraint_object_id
        WHERE fk.parent_object_id = OBJECT_ID(:table)
        ORDER BY fk.name, fkc.constraint_column_id"""

    primary_keys_query = """
        SELECT ku.COLUMN_NAME AS column_name, ku.ORDINAL_POSITION AS ordinal
        FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
        JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE ku ON tc.CONSTRAINT_NAME = ku.CONSTRAINT_NAME
        WHERE tc.TABLE_NAME = :table AND tc.CONSTRAINT_TYPE = 'PRIMARY KEY'"""

    def params(self, table: str, database: str) -> dict:
        return {"table": table}

    def tables_params(self, database: str) -> dict:
        return {}

    def map_column(self, row: Row) -> Column:
        return Column(
            name=_s(row["column_name"]),
            type=_s(row["data_type"]),
            nullable=_s(row["is_nullable"]).upper() == "YES",
            default=_s(row["column_default"]),
            is_pk=_truthy(row["is_pk"]),
            is_fk=_truthy(row["is_fk"]),
            is_unique=_truthy(row["is_unique"]),
            is_auto_incr=_truthy(row["is_identity"]),
        )


# ── Factory ───────────────────────────────────────────────────────────────────

_INTROSPECTORS: dict[DBType, type[Introspector]] = {
    DBType.MYSQL: MySQLIntrospector,
    DBType.POSTGRESQL: PostgresIntrospector,
    DBType.ORACLE: OracleIntrospector,
    DBType.SQLSERVER: SQLServerIntrospector,
}


def get_introspector(db_type) -> Introspector:
    """Return the introspector for a dialect tag; ValueError for unsupported tags."""
    try:
        return _INTROSPECTORS[DBType(db_type)]()
    except (KeyError, ValueError):
        raise ValueError(f"Unsupported database type: {db_type}") from None


def supported_db_types() -> list[str]:
    return [t.value for t in _INTROSPECTORS]
