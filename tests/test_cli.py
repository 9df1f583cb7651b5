"""Tests for the command line interface."""

import pytest
from typer.testing import CliRunner

from semdown.cli.app import app

runner = CliRunner()


@pytest.fixture
def model_file(tmp_path, sales_text):
    path = tmp_path / "sales.md"
    path.write_text(sales_text, encoding="utf-8")
    return path


def test_check(model_file):
    """Test the summary line of a clean model."""
    result = runner.invoke(app, ["check", str(model_file)])
    assert result.exit_code == 0
    assert "3 entities (0 stubs)" in result.stdout


def test_check_missing_file(tmp_path):
    """Test that a missing model exits with an error."""
    result = runner.invoke(app, ["check", str(tmp_path / "missing.md")])
    assert result.exit_code == 1


def test_check_reports_schema_issues(tmp_path):
    """Test that schema issues are printed and fail the run only with --strict."""
    path = tmp_path / "lines.md"
    path.write_text(
        "**OrderLine**\n- OrderLine has a Name.\n**Order Line**\n- Order Line has a Name.\n",
        encoding="utf-8",
    )
    result = runner.invoke(app, ["check", str(path)])
    assert result.exit_code == 0
    assert "schema: [TABLE_NAME_SUFFIXED]" in result.output
    assert "1 schema issues" in result.output

    strict = runner.invoke(app, ["check", str(path), "--strict"])
    assert strict.exit_code == 1


def test_generate_to_stdout(model_file):
    """Test single artifact generation."""
    result = runner.invoke(app, ["generate", str(model_file), "--kind", "physical-ddl"])
    assert result.exit_code == 0
    assert "CREATE TABLE physical_order (" in result.stdout


def test_generate_unknown_kind(model_file):
    """Test that an unknown artifact kind exits with an error."""
    result = runner.invoke(app, ["generate", str(model_file), "--kind", "catalog"])
    assert result.exit_code == 1


def test_build(model_file, tmp_path):
    """Test that build writes one file per artifact and dialect."""
    out = tmp_path / "out"
    result = runner.invoke(
        app, ["build", str(model_file), str(out), "-d", "postgres", "-d", "sqlite", "-k", "physical-ddl", "-k", "matrix"]
    )
    assert result.exit_code == 0
    names = sorted(p.name for p in out.iterdir())
    assert names == [
        "matrix.postgres.csv",
        "matrix.sqlite.csv",
        "physical-ddl.postgres.sql",
        "physical-ddl.sqlite.sql",
    ]


def test_ask(model_file):
    """Test planning a question from the command line."""
    result = runner.invoke(app, ["ask", str(model_file), "How many orders are there?"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "SELECT COUNT(*) AS order_count FROM logical_order;"


def test_describe_entity(model_file):
    """Test describing a single entity with its derived attributes and types."""
    result = runner.invoke(app, ["describe", str(model_file), "Person"])
    assert result.exit_code == 0
    assert "- Person has a Name." in result.stdout
    assert "classifies as: Customer" in result.stdout
