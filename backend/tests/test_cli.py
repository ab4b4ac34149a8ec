import json

import pytest
from unittest.mock import patch
from conftest import FakeLLM

import cli

GENERATION_REPLY = "SQL:\nSELECT id FROM users\n설명:\nAll ids."


@pytest.fixture
def schema_file(tmp_path, sample_ddl):
    path = tmp_path / "schema.sql"
    path.write_text(sample_ddl, encoding="utf-8")
    return path


def test_format_sql_breaks_on_clauses():
    out = cli.format_sql("SELECT id FROM users u LEFT JOIN orders o ON o.user_id = u.id WHERE o.total > 10 ORDER BY id")
    assert out.splitlines() == [
        "   SELECT id",
        "   FROM users u",
        "   LEFT JOIN orders o ON o.user_id = u.id",
        "   WHERE o.total > 10",
        "   ORDER BY id",
    ]


def test_load_schema_from_ddl_file(schema_file):
    args = cli.build_parser().parse_args(["--schema", str(schema_file)])
    schema = cli.load_schema(args)
    assert [t.name for t in schema.tables] == ["users", "orders"]


def test_load_schema_none_without_source():
    assert cli.load_schema(cli.build_parser().parse_args([])) is None


def test_db_option_offers_introspectable_types(capsys):
    parser = cli.build_parser()
    assert parser.parse_args(["--db", "oracle"]).db == "oracle"
    with pytest.raises(SystemExit):
        parser.parse_args(["--db", "sqlite"])
    assert "invalid choice" in capsys.readouterr().err


def test_single_prompt_prints_json(schema_file, capsys):
    with patch("cli.get_llm_client", return_value=FakeLLM(GENERATION_REPLY)):
        code = cli.main(["--schema", str(schema_file), "--prompt", "all user ids", "--type", "select"])
    assert code == 0
    out = capsys.readouterr().out
    payload = json.loads(out[out.index("{"):])
    assert payload["query"] == "SELECT id FROM users"
    assert payload["explanation"] == "All ids."


def test_bad_schema_file_exits_nonzero(tmp_path, capsys):
    path = tmp_path / "broken.json"
    path.write_text("{nope", encoding="utf-8")
    assert cli.main(["--schema", str(path)]) == 1
    assert "Could not load schema" in capsys.readouterr().err


def test_interactive_commands(schema_file, capsys):
    llm = FakeLLM(GENERATION_REPLY)
    inputs = iter(["/type insert", "add a user", "/schema", "/explain", "/bogus", "/quit"])
    with patch("cli.get_llm_client", return_value=llm), \
         patch("builtins.input", lambda prompt="": next(inputs)):
        code = cli.main(["--schema", str(schema_file), "-i"])
    assert code == 0
    out = capsys.readouterr().out
    assert "Switched to INSERT mode" in out
    assert "Query type: INSERT" in llm.prompts[0]
    assert "Table: users" in out
    assert "Usage: /explain <query>" in out
    assert "Unknown command: /bogus" in out
    assert "Bye!" in out
