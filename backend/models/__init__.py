from models.schema import DBType, Column, Index, ForeignKey, Table, Schema  # noqa: F401
from models.query import QueryRequest, QueryResponse, Issue, QueryValidation  # noqa: F401
from models.connection import ConnectionRequest  # noqa: F401
