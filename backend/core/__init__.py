from core.ddl_parser import parse_ddl, parse_json, schema_to_json, generate_ddl, SchemaDecodeError  # noqa: F401
from core.introspection import get_introspector  # noqa: F401
from core.db_connector import create_engine_from_request, extract_schema  # noqa: F401
from core.response_extractor import extract_query_response, extract_validation  # noqa: F401
from core.query_generator import QueryGenerator, format_schema  # noqa: F401
from core.session import SchemaSessionStore, sessions  # noqa: F401
