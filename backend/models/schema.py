"""Pydantic schemas for the canonical database shape shared by every schema source."""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class DBType(str, Enum):
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    ORACLE = "oracle"
    SQLSERVER = "sqlserver"


class Column(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    nullable: bool = True
    default: str = ""
    comment: str = ""
    is_pk: bool = False
    is_fk: bool = False
    is_unique: bool = False
    is_auto_incr: bool = False

    @field_validator("default", "comment", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class Index(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    columns: list[str] = Field(default_factory=list)
    is_unique: bool = False
    type: str = ""                   # BTREE, HASH, FULLTEXT, ...

    @field_validator("columns", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return [] if value is None else value


class ForeignKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    column: str
    ref_table: str
    ref_column: str
    on_delete: str = ""
    on_update: str = ""

    @field_validator("on_delete", "on_update", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class Table(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    columns: list[Column] = Field(default_factory=list)
    primary_key: list[str] = Field(default_factory=list)
    foreign_keys: list[ForeignKey] = Field(default_factory=list)
    indexes: list[Index] = Field(default_factory=list)

    @field_validator("columns", "primary_key", "foreign_keys", "indexes", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return [] if value is None else value

    def get_column(self, name: str) -> Optional[Column]:
        return next((c for c in self.columns if c.name.lower() == name.lower()), None)


class Schema(BaseModel):
    model_config = ConfigDict(frozen=True)

    database: str = ""
    db_type: DBType
    tables: list[Table] = Field(default_factory=list)

    @field_validator("database", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("tables", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return [] if value is None else value

    def find_table(self, name: str) -> Optional[Table]:
        """Case-insensitive table lookup."""
        return next((t for t in self.tables if t.name.lower() == name.lower()), None)
