import os

import msgspec
import pytest

from adminbus.broker.logging_models import BrokerInfo, RouterError
from adminbus.logging import Logger, LoggerStream, LoggingConfig
from adminbus.logging.models import Entry, LogLevel


def read_json_lines(path: str) -> list[dict]:
    with open(path, "rb") as logfile:
        return [msgspec.json.decode(line) for line in logfile.read().splitlines()]


class TestFileLogging:
    @pytest.mark.asyncio
    async def test_entries_are_written_as_json_lines(
        self,
        temp_log_directory: str,
        sample_entry_factory,
    ):
        path = os.path.join(temp_log_directory, "broker.json")
        logger = Logger()
        logger.configure(path=path)

        await logger.log(sample_entry_factory(message="first"))
        await logger.log(sample_entry_factory(message="second", level=LogLevel.ERROR))
        await logger.close()

        logs = read_json_lines(path)

        assert [log["entry"]["message"] for log in logs] == ["first", "second"]
        assert [log["entry"]["level"] for log in logs] == ["INFO", "ERROR"]
        assert logs[0]["function_name"] == "test_entries_are_written_as_json_lines"

    @pytest.mark.asyncio
    async def test_entry_context_fields_are_kept(self, temp_log_directory: str):
        path = os.path.join(temp_log_directory, "broker.json")
        logger = Logger()
        logger.configure(path=path)

        await logger.log(
            BrokerInfo(
                message="Subscribing the NODE=http://10.0.0.1:8080",
                node_host="10.0.0.1",
                node_port=8080,
                topic="admin-topic",
            )
        )
        await logger.close()

        entry = read_json_lines(path)[0]["entry"]

        assert entry["node_host"] == "10.0.0.1"
        assert entry["node_port"] == 8080
        assert entry["topic"] == "admin-topic"

    @pytest.mark.asyncio
    async def test_entries_below_level_are_skipped(
        self,
        temp_log_directory: str,
        sample_entry_factory,
    ):
        LoggingConfig().update(log_level="error")

        path = os.path.join(temp_log_directory, "broker.json")
        logger = Logger()
        logger.configure(path=path)

        await logger.log(sample_entry_factory(message="skipped", level=LogLevel.INFO))
        await logger.log(sample_entry_factory(message="kept", level=LogLevel.ERROR))
        await logger.close()

        assert [log["entry"]["message"] for log in read_json_lines(path)] == ["kept"]

    @pytest.mark.asyncio
    async def test_path_per_call(self, temp_log_directory: str, sample_entry: Entry):
        path = os.path.join(temp_log_directory, "router.json")
        logger = Logger()

        await logger.log(sample_entry, path=path)
        await logger.close()

        assert len(read_json_lines(path)) == 1


class TestStreamLogging:
    @pytest.mark.asyncio
    async def test_entries_are_written_to_stdout(self, capsys, sample_entry: Entry):
        logger = Logger()

        await logger.log(sample_entry)
        await logger.close()

        output = capsys.readouterr().out

        assert "INFO" in output
        assert "Test log message" in output

    @pytest.mark.asyncio
    async def test_component_entries_use_default_template(self, capsys):
        logger = Logger()

        await logger.log(
            RouterError(
                message="Error sending message",
                node_host="10.0.0.1",
                node_port=8080,
                message_kind="ApplicationEvent",
            ),
        )

        line = capsys.readouterr().out

        assert line.endswith(" - Error sending message\n")
        assert " - ERROR - " in line
        assert "test_component_entries_use_default_template" in line

    @pytest.mark.asyncio
    async def test_stderr_output(self, capsys, sample_entry: Entry):
        LoggingConfig().update(log_output="stderr")

        try:
            await Logger().log(sample_entry)

        finally:
            LoggingConfig().update(log_output="stdout")

        captured = capsys.readouterr()

        assert captured.out == ""
        assert "Test log message" in captured.err

    @pytest.mark.asyncio
    async def test_disabled_loggers(self, capsys, sample_entry_factory):
        stream = LoggerStream(name="muted")
        LoggingConfig().disable("muted")

        await stream.log(sample_entry_factory(message="muted"))
        await Logger().log(sample_entry_factory(message="muted too"), name="muted")

        assert capsys.readouterr().out == ""
