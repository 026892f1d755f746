"""Unit tests for logging configuration."""

import json
from pathlib import Path

import pytest
from loguru import logger

from territory_api.core.logging import LOG_FILE_NAME, NO_REQUEST_ID, setup_logging


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    setup_logging("INFO")


class TestLogging:
    """Tests for Loguru logging setup."""

    def test_levels_case_insensitive(self) -> None:
        setup_logging("debug")
        setup_logging("WARNING")

    def test_unknown_format_rejected(self) -> None:
        with pytest.raises(ValueError, match="log format"):
            setup_logging("INFO", log_format="xml")  # type: ignore[arg-type]

    def test_file_sink_carries_request_id(self, tmp_path: Path) -> None:
        log_dir = tmp_path / "logs"
        setup_logging("INFO", log_dir=str(log_dir))

        logger.info("range audit started")
        with logger.contextualize(request_id="req-42"):
            logger.info("range created")
        logger.complete()

        lines = (log_dir / LOG_FILE_NAME).read_text().splitlines()
        assert f"| {NO_REQUEST_ID} |" in lines[0]
        assert "range audit started" in lines[0]
        assert "| req-42 |" in lines[1]
        assert "range created" in lines[1]

    def test_level_filters_file_sink(self, tmp_path: Path) -> None:
        setup_logging("WARNING", log_dir=str(tmp_path))

        logger.info("quiet")
        logger.warning("loud")
        logger.complete()

        content = (tmp_path / LOG_FILE_NAME).read_text()
        assert "quiet" not in content
        assert "loud" in content

    def test_json_format_serializes_request_id(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging("INFO", log_format="json")

        with logger.contextualize(request_id="req-7"):
            logger.info("nearby lookup")
        logger.complete()

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["record"]["message"] == "nearby lookup"
        assert record["record"]["extra"]["request_id"] == "req-7"
