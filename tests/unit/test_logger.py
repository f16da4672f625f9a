"""Unit tests for the logging helpers."""

import logging
import re
from pathlib import Path
from typing import Generator

import pytest

from chipster_client import logger as chipster_logger
from chipster_client.logger import (
    ChipsterFormatter,
    add_log_file,
    get_logger,
    object_to_string,
    set_level,
)
from chipster_client.models import Session

LINE = re.compile(r"^\[(\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z)\] (\w+): (.*) \(in (.+)\)$", re.S)


def make_record(msg: object, *args: object, level: int = logging.INFO) -> logging.LogRecord:
    record = logging.LogRecord("chipster.test", level, "/src/upload.py", 1, msg, args, None)
    return record


class TestObjectToString:
    """Test object_to_string."""

    def test_string(self) -> None:
        """Test strings are kept as they are."""
        assert object_to_string("text") == "text"

    def test_dict(self) -> None:
        """Test dicts are rendered as JSON."""
        assert object_to_string({"size": 1}) == '{"size": 1}'

    def test_list(self) -> None:
        """Test lists are rendered as JSON."""
        assert object_to_string([1, "a"]) == '[1, "a"]'

    def test_model(self) -> None:
        """Test models are rendered as JSON with service field names."""
        assert object_to_string(Session(session_id="s1")) == '{"sessionId":"s1"}'

    def test_number(self) -> None:
        """Test other objects use str()."""
        assert object_to_string(42) == "42"

    def test_exception_with_cause(self) -> None:
        """Test exceptions include the chained cause."""
        try:
            try:
                raise ValueError("original error")
            except ValueError as e:
                raise RuntimeError("wrapping error") from e
        except RuntimeError as e:
            text = object_to_string(e)

        assert "ValueError: original error" in text
        assert "RuntimeError: wrapping error" in text
        assert text.endswith("\n")


class TestChipsterFormatter:
    """Test ChipsterFormatter."""

    def test_line_format(self) -> None:
        """Test the line layout."""
        line = ChipsterFormatter().format(make_record("hello"))
        match = LINE.match(line)
        assert match is not None
        assert match.group(2) == "INFO"
        assert match.group(3) == "hello"
        assert match.group(4) == "upload.py"

    def test_extra_args_appended(self) -> None:
        """Test arguments without placeholders are appended."""
        line = ChipsterFormatter().format(make_record("the answer is", 42, {"a": 1}))
        assert 'INFO: the answer is 42 {"a": 1} (in upload.py)' in line

    def test_placeholders(self) -> None:
        """Test %-style arguments are interpolated."""
        line = ChipsterFormatter().format(make_record("get() %s", "http://localhost"))
        assert "INFO: get() http://localhost (in upload.py)" in line

    def test_percent_without_placeholder(self) -> None:
        """Test a literal percent sign with extra arguments."""
        line = ChipsterFormatter().format(make_record("100% done", "x"))
        assert "INFO: 100% done x (in upload.py)" in line

    def test_exception_message(self) -> None:
        """Test an exception as the message is rendered with its stack."""
        try:
            raise ValueError("plain error")
        except ValueError as e:
            line = ChipsterFormatter().format(make_record(e, level=logging.ERROR))

        assert "ERROR: Traceback" in line
        assert "ValueError: plain error" in line

    def test_exception_argument(self) -> None:
        """Test an exception after the message."""
        line = ChipsterFormatter().format(make_record("text before", ValueError("plain error")))
        assert "text before ValueError: plain error" in line

    def test_source_file_attribute(self) -> None:
        """Test the source file set by the logger wins over the record file name."""
        record = make_record("hello")
        record.source_file = "config.py"
        assert ChipsterFormatter().format(record).endswith("(in config.py)")


class TestGetLogger:
    """Test get_logger."""

    def test_name_from_source_file(self) -> None:
        """Test the logger is named after the source file."""
        log = get_logger("/opt/chipster/tools/upload.py")
        assert log.name == "chipster.upload"
        assert log.parent is logging.getLogger("chipster")

    def test_same_logger(self) -> None:
        """Test the same source file gets the same logger."""
        assert get_logger("/a/upload.py") is get_logger("/b/upload.py")
        assert len(get_logger("/a/upload.py").filters) == 1

    def test_source_file_in_record(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test records carry the source file name."""
        log = get_logger("/opt/chipster/tools/download.py")
        with caplog.at_level(logging.INFO, logger="chipster"):
            log.info("started")

        assert caplog.records[-1].source_file == "download.py"

    def test_extra_args_for_other_handlers(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test handlers with a standard formatter get the arguments appended."""
        log = get_logger("/opt/chipster/tools/plain.py")
        with caplog.at_level(logging.INFO, logger="chipster"):
            log.info("written", 3)
            log.warning("failed", ValueError("plain error"))

        messages = [record.getMessage() for record in caplog.records[-2:]]
        assert messages[0] == "written 3"
        assert messages[1].startswith("failed ValueError: plain error")
        assert caplog.records[-1].args == ()

    def test_placeholders_for_other_handlers(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test %-style arguments are interpolated before reaching other handlers."""
        log = get_logger("/opt/chipster/tools/plain.py")
        with caplog.at_level(logging.INFO, logger="chipster"):
            log.info("get() %s", "http://localhost")

        assert caplog.records[-1].getMessage() == "get() http://localhost"

    def test_log_file(self, tmp_path: Path) -> None:
        """Test a logger with its own file."""
        path = tmp_path / "tool.log"
        log = get_logger("/opt/chipster/tools/tool_file.py", log_file=str(path))
        log.info("written", 3)
        for handler in log.handlers:
            handler.flush()

        content = path.read_text()
        assert "INFO: written 3 (in tool_file.py)" in content

        # not added twice
        get_logger("/opt/chipster/tools/tool_file.py", log_file=str(path))
        assert len(log.handlers) == 1
        for handler in log.handlers:
            log.removeHandler(handler)
            handler.close()


@pytest.fixture
def shared_file(tmp_path: Path) -> Generator[Path, None, None]:
    """Enable the shared log file and remove it afterwards."""
    path = tmp_path / "logs" / "chipster.log"
    handler = add_log_file(str(path))
    yield path
    chipster_logger.root_logger.removeHandler(handler)
    handler.close()
    chipster_logger.file_handler = None


class TestAddLogFile:
    """Test add_log_file."""

    def test_shared_file(self, shared_file: Path) -> None:
        """Test all loggers write to the shared file."""
        get_logger("/src/first.py").info("one")
        get_logger("/src/second.py").warning("two")
        chipster_logger.file_handler.flush()

        content = shared_file.read_text()
        assert "INFO: one (in first.py)" in content
        assert "WARNING: two (in second.py)" in content

    def test_added_once(self, shared_file: Path) -> None:
        """Test the shared file handler is created only once."""
        assert add_log_file(str(shared_file)) is chipster_logger.file_handler


class TestSetLevel:
    """Test set_level."""

    def test_set_level(self) -> None:
        """Test the level applies to loggers and the console."""
        try:
            set_level("debug")
            assert chipster_logger.root_logger.level == logging.DEBUG
            assert chipster_logger.console_handler.level == logging.DEBUG
        finally:
            set_level("info")
