"""Tests for the sticky port record."""

import pytest

from devport.errors import RecordCorruptError, RecordWriteError

from .lib import FilePortRecord, ensure_gitignored, parse_port


class TestParsePort:
    """Tests for parse_port()."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("3000", 3000),
            ("3003\n", 3003),
            ("  4010  ", 4010),
            ("1", 1),
            ("65535", 65535),
        ],
    )
    def test_valid(self, raw, expected):
        """Valid port text parses to an int."""
        assert parse_port(raw) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw",
        ["", "abc", "-1", "0", "65536", "30.5", "3000 3001", "--3000", "\u00b2", "+3000", "3_000"],
    )
    def test_invalid(self, raw):
        """Anything that is not a port in 1-65535 is rejected."""
        assert parse_port(raw) is None


class TestFilePortRecord:
    """Tests for FilePortRecord."""

    @pytest.mark.unit
    def test_read_missing_returns_none(self, tmp_path):
        """A missing record reads as None."""
        record = FilePortRecord(tmp_path / ".dev-port")
        assert record.read() is None
        assert record.exists is False

    @pytest.mark.unit
    def test_write_then_read(self, tmp_path):
        """Written port is read back."""
        record = FilePortRecord(tmp_path / ".dev-port")
        record.write(3003)
        assert record.read() == 3003
        assert (tmp_path / ".dev-port").read_text() == "3003\n"

    @pytest.mark.unit
    def test_write_overwrites(self, tmp_path):
        """A second write replaces the first."""
        record = FilePortRecord(tmp_path / ".dev-port")
        record.write(3000)
        record.write(3005)
        assert record.read() == 3005

    @pytest.mark.unit
    def test_write_leaves_no_temp_file(self, tmp_path):
        """The temporary file is renamed into place."""
        record = FilePortRecord(tmp_path / ".dev-port")
        record.write(3000)
        assert sorted(p.name for p in tmp_path.iterdir()) == [".dev-port"]

    @pytest.mark.unit
    def test_read_accepts_hand_written_value(self, tmp_path):
        """A record without trailing newline is accepted."""
        path = tmp_path / ".dev-port"
        path.write_text("4010")
        assert FilePortRecord(path).read() == 4010

    @pytest.mark.unit
    @pytest.mark.parametrize("content", ["garbage", "-20", "70000", "", "--3000\n", "\u00b2\n"])
    def test_read_corrupt_raises(self, tmp_path, content):
        """Malformed content raises RecordCorruptError."""
        path = tmp_path / ".dev-port"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(RecordCorruptError) as exc_info:
            FilePortRecord(path).read()
        assert exc_info.value.path == path
        assert exc_info.value.raw == content

    @pytest.mark.unit
    def test_read_directory_raises(self, tmp_path):
        """An unreadable record (a directory) is corrupt, not fatal."""
        path = tmp_path / ".dev-port"
        path.mkdir()
        with pytest.raises(RecordCorruptError):
            FilePortRecord(path).read()

    @pytest.mark.unit
    @pytest.mark.parametrize("port", [0, -1, 65536])
    def test_write_rejects_invalid_port(self, tmp_path, port):
        """Out-of-range ports are never persisted."""
        record = FilePortRecord(tmp_path / ".dev-port")
        with pytest.raises(ValueError):
            record.write(port)
        assert record.exists is False

    @pytest.mark.unit
    def test_write_failure_raises(self, tmp_path):
        """A missing parent directory surfaces as RecordWriteError."""
        record = FilePortRecord(tmp_path / "missing" / ".dev-port")
        with pytest.raises(RecordWriteError):
            record.write(3000)

    @pytest.mark.unit
    def test_clear(self, tmp_path):
        """clear() deletes the record and reports whether it existed."""
        record = FilePortRecord(tmp_path / ".dev-port")
        assert record.clear() is False
        record.write(3000)
        assert record.clear() is True
        assert record.read() is None


class TestEnsureGitignored:
    """Tests for ensure_gitignored()."""

    @pytest.mark.unit
    def test_no_gitignore_is_left_alone(self, tmp_path):
        """No .gitignore is created."""
        assert ensure_gitignored(tmp_path, ".dev-port") is False
        assert not (tmp_path / ".gitignore").exists()

    @pytest.mark.unit
    def test_appends_entry(self, tmp_path):
        """Entry is appended to an existing .gitignore."""
        gitignore = tmp_path / ".gitignore"
        gitignore.write_text("node_modules/\n")
        assert ensure_gitignored(tmp_path, ".dev-port") is True
        assert gitignore.read_text() == "node_modules/\n.dev-port\n"

    @pytest.mark.unit
    def test_adds_missing_newline(self, tmp_path):
        """A file without trailing newline gets one before the entry."""
        gitignore = tmp_path / ".gitignore"
        gitignore.write_text(".env")
        ensure_gitignored(tmp_path, ".dev-port")
        assert gitignore.read_text() == ".env\n.dev-port\n"

    @pytest.mark.unit
    @pytest.mark.parametrize("existing", [".dev-port", "/.dev-port"])
    def test_existing_entry_not_duplicated(self, tmp_path, existing):
        """Already ignored records are not added twice."""
        gitignore = tmp_path / ".gitignore"
        gitignore.write_text(f"{existing}\n")
        assert ensure_gitignored(tmp_path, ".dev-port") is False
        assert gitignore.read_text() == f"{existing}\n"
