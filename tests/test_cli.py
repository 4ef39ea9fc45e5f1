"""Tests for the CLI implementation."""

import json

import pytest
from typer.testing import CliRunner

from streamwrap.cli import app
from streamwrap.core import locking


class TestCLI:
    """Test the CLI functionality."""

    @pytest.fixture
    def runner(self):
        """CLI test runner."""
        return CliRunner()

    @pytest.fixture
    def source(self, tmp_path):
        """Small source file."""
        p = tmp_path / "source.txt"
        p.write_bytes(b"0123456789")
        return p

    def test_copy_file_to_file(self, runner, source, tmp_path):
        """Test copying between two files."""
        target = tmp_path / "target.txt"
        result = runner.invoke(app, ["copy", str(source), str(target)])

        assert result.exit_code == 0
        assert target.read_bytes() == b"0123456789"

    def test_copy_max_length_and_append(self, runner, source, tmp_path):
        """Test --max-length and --append together."""
        target = tmp_path / "target.txt"
        target.write_bytes(b">")
        result = runner.invoke(app, ["copy", str(source), str(target), "--max-length", "4", "--append"])

        assert result.exit_code == 0
        assert target.read_bytes() == b">0123"

    def test_copy_from_stdin(self, runner, tmp_path):
        """Test "-" reads stdin."""
        target = tmp_path / "target.txt"
        result = runner.invoke(app, ["copy", "-", str(target), "--chunk-size", "3"], input="from stdin")

        assert result.exit_code == 0
        assert target.read_bytes() == b"from stdin"

    def test_copy_to_stdout(self, runner, source):
        """Test "-" writes stdout."""
        result = runner.invoke(app, ["copy", str(source), "-"])

        assert result.exit_code == 0
        assert result.stdout == "0123456789"

    def test_copy_missing_source(self, runner, tmp_path):
        """Test an unreadable source exits with an error."""
        result = runner.invoke(app, ["copy", str(tmp_path / "missing"), str(tmp_path / "out")])

        assert result.exit_code == 1
        assert "Failed opening stream handle" in result.output
        assert not (tmp_path / "out").exists()

    def test_copy_invalid_chunk_size(self, runner, source, tmp_path):
        """Test option validation."""
        result = runner.invoke(app, ["copy", str(source), str(tmp_path / "out"), "--chunk-size", "0"])
        assert result.exit_code != 0

    @pytest.mark.skipif(not locking.LOCKING_SUPPORTED, reason="flock() not available")
    def test_copy_locked_target(self, runner, source, tmp_path):
        """Test --lock reports a target held by someone else."""
        target = tmp_path / "target.txt"
        target.write_bytes(b"")
        with open(target, "rb") as rival:
            locking.fcntl.flock(rival, locking.fcntl.LOCK_EX | locking.fcntl.LOCK_NB)
            result = runner.invoke(app, ["copy", str(source), str(target), "--lock"])

        assert result.exit_code == 1
        assert "is locked by another process." in result.output

    def test_copy_with_lock(self, runner, source, tmp_path):
        """Test --lock on an uncontended target."""
        target = tmp_path / "target.txt"
        result = runner.invoke(app, ["copy", str(source), str(target), "--lock"])

        assert result.exit_code == 0
        assert target.read_bytes() == b"0123456789"

    def test_csv(self, runner, tmp_path):
        """Test CSV records are printed as JSON lines."""
        p = tmp_path / "data.csv"
        p.write_bytes(b'name;note\n"Smith; J.";"two\nlines"\n\nlast;\n')
        result = runner.invoke(app, ["csv", str(p), "--delimiter", ";"])

        assert result.exit_code == 0
        lines = [json.loads(line) for line in result.stdout.strip().splitlines()]
        assert lines == [["name", "note"], ["Smith; J.", "two\nlines"], ["last", ""]]

    def test_csv_bad_dialect(self, runner, tmp_path):
        """Test an invalid dialect is reported."""
        p = tmp_path / "data.csv"
        p.write_bytes(b"a,b\n")
        result = runner.invoke(app, ["csv", str(p), "--quote", ","])

        assert result.exit_code == 1
        assert "should all be unique" in result.output

    def test_stat(self, runner, source):
        """Test stat prints metadata as JSON."""
        result = runner.invoke(app, ["stat", str(source)])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["metadata"]["stream_type"] == "file"
        assert payload["metadata"]["uri"] == str(source)
        assert payload["metadata"]["mode"] == "rb"
        assert payload["stat"]["size"] == 10
        assert payload["remote"] is False

    def test_verbose(self, runner, source):
        """Test the verbose flag is accepted."""
        result = runner.invoke(app, ["--verbose", "stat", str(source)])
        assert result.exit_code == 0
