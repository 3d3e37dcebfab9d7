"""
Tests for CLI module - commands, output modes and exit codes.

Commands:
    - extract: Raw response records to extraction records
    - aggregate: Extraction records to ranked metrics (single scope, all
      scopes, date windows, previous-window rank change, exports)
    - validate: Config validation command
    - main callback: Version flag and help output

Output Modes:
    - Human mode (--format text): Rich output with spinners, tables, panels
    - Agent mode (--format json): Valid JSON with no ANSI codes
    - Quiet mode (--quiet): Minimal tab-separated output

Exit Codes:
    - 0: Success
    - 1: Configuration error
    - 2: Input/data error
"""

import csv
import json
import logging
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from brand_metrics.cli import (
    EXIT_CONFIG_ERROR,
    EXIT_DATA_ERROR,
    EXIT_SUCCESS,
    app,
    read_response_records,
)
from brand_metrics.config.constants import SOCIAL_DOMAINS
from brand_metrics.exceptions import RecordFormatError
from brand_metrics.storage.writer import read_extractions
from brand_metrics.utils.console import output_mode

EXAMPLES = Path(__file__).parent.parent / "examples"
EXAMPLE_RESPONSES = EXAMPLES / "responses.jsonl"
EXAMPLE_CONFIG = EXAMPLES / "metrics.config.yaml"

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_cli_state():
    """Reset global output mode and root log handlers between tests."""
    output_mode.format = "text"
    output_mode.quiet = False
    output_mode._json_buffer.clear()
    yield
    output_mode.format = "text"
    output_mode.quiet = False
    output_mode._json_buffer.clear()
    logging.getLogger().handlers.clear()


@pytest.fixture
def cli_runner():
    """Return CliRunner for testing Typer apps."""
    return CliRunner()


@pytest.fixture
def extractions_file(cli_runner, tmp_path):
    """Run 'extract' on the example responses and return the output path."""
    output = tmp_path / "extractions.jsonl"
    result = cli_runner.invoke(
        app,
        [
            "extract",
            "--input", str(EXAMPLE_RESPONSES),
            "--output", str(output),
            "--config", str(EXAMPLE_CONFIG),
            "--workers", "1",
        ],
    )
    assert result.exit_code == EXIT_SUCCESS, result.output
    return output


def write_lines(path, rows):
    path.write_text("\n".join(json.dumps(row) for row in rows) + "\n", encoding="utf-8")
    return path


# ============================================================================
# extract
# ============================================================================


class TestExtractCommand:
    """Test suite for 'extract' command."""

    def test_writes_extractions(self, extractions_file):
        """Test every input record produces a scoped extraction."""
        records = read_extractions(extractions_file)

        assert [r.response_id for r in records] == ["r1", "r2", "r3", "r4"]
        assert records[0].platform == "openai"
        assert records[0].tested_at.day == 10
        first = records[0].extraction.get("Acme Corp")
        assert first.mentioned is True
        assert first.first_position == 1

    def test_citations_use_config_tables(self, extractions_file):
        """Test the config's brand domains classify citations."""
        records = read_extractions(extractions_file)
        types = [c.type for c in records[0].extraction.response.citations]

        assert types == ["brand", "earned"]

    def test_default_brands(self, cli_runner, tmp_path):
        """Test --brand applies to records without brand_names."""
        source = write_lines(tmp_path / "in.jsonl", [{"response": "Acme leads."}])
        output = tmp_path / "out.jsonl"

        result = cli_runner.invoke(
            app,
            [
                "extract", "-i", str(source), "-o", str(output),
                "--brand", "Acme", "--brand", "Globex", "-w", "1",
            ],
        )

        assert result.exit_code == EXIT_SUCCESS, result.output
        extraction = read_extractions(output)[0].extraction
        assert [b.brand_name for b in extraction.brand_metrics] == ["Acme", "Globex"]

    def test_quiet_mode(self, cli_runner, tmp_path):
        """Test quiet mode prints tab-separated totals."""
        output = tmp_path / "out.jsonl"
        result = cli_runner.invoke(
            app,
            ["extract", "-i", str(EXAMPLE_RESPONSES), "-o", str(output), "-w", "1", "-q"],
        )

        assert result.exit_code == EXIT_SUCCESS
        assert f"4\t4\t{output}" in result.stdout

    def test_missing_input(self, cli_runner, tmp_path):
        """Test a missing input file exits with a data error."""
        result = cli_runner.invoke(
            app,
            ["extract", "-i", str(tmp_path / "missing.jsonl"), "-o", str(tmp_path / "o.jsonl")],
        )
        assert result.exit_code == EXIT_DATA_ERROR

    def test_malformed_record(self, cli_runner, tmp_path):
        """Test a non-list brand_names exits with a data error."""
        source = write_lines(
            tmp_path / "in.jsonl", [{"response": "Acme", "brand_names": "Acme"}]
        )
        result = cli_runner.invoke(
            app, ["extract", "-i", str(source), "-o", str(tmp_path / "o.jsonl")]
        )
        assert result.exit_code == EXIT_DATA_ERROR

    def test_missing_config(self, cli_runner, tmp_path):
        """Test a missing config exits with a config error."""
        result = cli_runner.invoke(
            app,
            [
                "extract", "-i", str(EXAMPLE_RESPONSES), "-o", str(tmp_path / "o.jsonl"),
                "-c", str(tmp_path / "missing.yaml"),
            ],
        )
        assert result.exit_code == EXIT_CONFIG_ERROR


class TestReadResponseRecords:
    """Test suite for read_response_records()."""

    def test_metadata_aligned(self):
        """Test tasks and metadata line up with input records."""
        tasks, metadata = read_response_records(EXAMPLE_RESPONSES)

        assert len(tasks) == len(metadata) == 4
        assert tasks[0].brand_names == ("Acme Corp", "Globex", "Initech")
        assert metadata[3]["prompt_id"] == "p2"
        assert metadata[3]["tested_at"].hour == 8

    def test_bad_timestamp(self, tmp_path):
        """Test naive tested_at values are rejected."""
        source = write_lines(
            tmp_path / "in.jsonl", [{"response": "x", "tested_at": "2025-11-10T09:00:00"}]
        )
        with pytest.raises(RecordFormatError, match="record 1"):
            read_response_records(source)


# ============================================================================
# aggregate
# ============================================================================


class TestAggregateCommand:
    """Test suite for 'aggregate' command."""

    def test_overall_json_export(self, cli_runner, extractions_file, tmp_path):
        """Test default overall aggregation exported as JSON."""
        output = tmp_path / "metrics.json"
        result = cli_runner.invoke(
            app, ["aggregate", "-i", str(extractions_file), "-o", str(output)]
        )

        assert result.exit_code == EXIT_SUCCESS, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert len(data) == 1
        assert data[0]["scope"] == "overall"
        assert data[0]["total_responses"] == 4
        assert [b["brand_name"] for b in data[0]["brands"]] == [
            "Acme Corp",
            "Globex",
            "Initech",
        ]
        ranks = sorted(b["visibility_score"]["rank"] for b in data[0]["brands"])
        assert ranks == [1, 2, 3]

    def test_single_scope(self, cli_runner, extractions_file, tmp_path):
        """Test --scope and --scope-value filter records."""
        output = tmp_path / "metrics.json"
        result = cli_runner.invoke(
            app,
            [
                "aggregate", "-i", str(extractions_file),
                "--scope", "platform", "--scope-value", "openai",
                "-o", str(output),
            ],
        )

        assert result.exit_code == EXIT_SUCCESS, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data[0]["scope_value"] == "openai"
        assert data[0]["total_responses"] == 2

    def test_all_scopes_csv_export(self, cli_runner, extractions_file, tmp_path):
        """Test --all-scopes exports one row per scope and brand."""
        output = tmp_path / "metrics.csv"
        result = cli_runner.invoke(
            app, ["aggregate", "-i", str(extractions_file), "--all-scopes", "-o", str(output)]
        )

        assert result.exit_code == EXIT_SUCCESS, result.output
        with open(output, encoding="utf-8", newline="") as f:
            rows = list(csv.DictReader(f))
        # overall + 2 platforms + 2 topics + 2 personas + 2 prompts, 3 brands each
        assert len(rows) == 27
        assert rows[0]["scope"] == "overall"

    def test_window_with_previous(self, cli_runner, extractions_file, tmp_path):
        """Test a dated window with rank change against the previous window."""
        output = tmp_path / "metrics.json"
        result = cli_runner.invoke(
            app,
            [
                "aggregate", "-i", str(extractions_file),
                "--from", "2025-11-08", "--to", "2025-11-15", "--with-previous",
                "-o", str(output),
            ],
        )

        assert result.exit_code == EXIT_SUCCESS, result.output
        data = json.loads(output.read_text(encoding="utf-8"))[0]
        assert data["total_responses"] == 3
        assert data["date_range"] == {
            "date_from": "2025-11-08T00:00:00Z",
            "date_to": "2025-11-15T00:00:00Z",
        }
        for brand in data["brands"]:
            assert brand["visibility_score"]["rank_change"] is not None

    def test_quiet_mode(self, cli_runner, extractions_file):
        """Test quiet mode prints one tab-separated line per brand."""
        result = cli_runner.invoke(app, ["aggregate", "-i", str(extractions_file), "-q"])

        assert result.exit_code == EXIT_SUCCESS
        lines = [line for line in result.stdout.splitlines() if line.startswith("overall\t")]
        assert len(lines) == 3

    @pytest.mark.parametrize(
        "args",
        [
            ["--from", "2025-11-08"],
            ["--from", "2025-11-15", "--to", "2025-11-08"],
            ["--from", "garbage", "--to", "2025-11-08"],
            ["--with-previous"],
            ["--scope", "platform"],
            ["--scope", "region", "--scope-value", "eu"],
            ["-o", "metrics.txt"],
        ],
    )
    def test_data_errors(self, cli_runner, extractions_file, args):
        """Test malformed windows, scopes and outputs exit with a data error."""
        result = cli_runner.invoke(app, ["aggregate", "-i", str(extractions_file), *args])
        assert result.exit_code == EXIT_DATA_ERROR

    def test_malformed_extractions(self, cli_runner, tmp_path):
        """Test unreadable extraction records exit with a data error."""
        source = tmp_path / "bad.jsonl"
        source.write_text("{not json\n", encoding="utf-8")

        result = cli_runner.invoke(app, ["aggregate", "-i", str(source)])
        assert result.exit_code == EXIT_DATA_ERROR


# ============================================================================
# validate
# ============================================================================


class TestValidateCommand:
    """Test suite for 'validate' command."""

    def test_valid_config_text(self, cli_runner):
        """Test human output for a valid config."""
        result = cli_runner.invoke(app, ["validate", "--config", str(EXAMPLE_CONFIG)])

        assert result.exit_code == EXIT_SUCCESS
        assert "Configuration is valid" in result.stdout

    def test_valid_config_json(self, cli_runner):
        """Test agent output is valid JSON with table counts."""
        result = cli_runner.invoke(
            app, ["validate", "--config", str(EXAMPLE_CONFIG), "--format", "json"]
        )

        assert result.exit_code == EXIT_SUCCESS
        data = json.loads(result.stdout)
        assert data["valid"] is True
        assert data["brand_domain_tables"] == 1
        assert data["competitor_domain_tables"] == 2
        assert data["social_domains"] == len(SOCIAL_DOMAINS)
        assert "\x1b[" not in result.stdout

    def test_invalid_config_json(self, cli_runner, tmp_path):
        """Test agent output for a config that fails validation."""
        config_file = tmp_path / "bad.yaml"
        config_file.write_text(
            yaml.dump({"detection": {"fuzzy_threshold": 2.0}}), encoding="utf-8"
        )

        result = cli_runner.invoke(
            app, ["validate", "--config", str(config_file), "--format", "json"]
        )

        assert result.exit_code == EXIT_CONFIG_ERROR
        data = json.loads(result.stdout)
        assert data["valid"] is False
        assert data["error_type"] == "ConfigValidationError"

    def test_missing_config_json(self, cli_runner, tmp_path):
        """Test agent output for a missing config file."""
        result = cli_runner.invoke(
            app, ["validate", "--config", str(tmp_path / "missing.yaml"), "--format", "json"]
        )

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert json.loads(result.stdout)["error_type"] == "ConfigFileNotFoundError"


# ============================================================================
# main callback
# ============================================================================


class TestMainCallback:
    """Test suite for the app callback."""

    def test_version(self, cli_runner):
        """Test --version prints the version."""
        result = cli_runner.invoke(app, ["--version"])

        assert result.exit_code == EXIT_SUCCESS
        assert "brand-metrics" in result.stdout
        assert "version" in result.stdout

    def test_no_command(self, cli_runner):
        """Test invoking without a command lists commands."""
        result = cli_runner.invoke(app, [])

        assert result.exit_code == EXIT_SUCCESS
        assert "Use --help" in result.stdout
