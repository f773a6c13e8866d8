"""Tests for logging setup."""

import json
import logging

import structlog

from taskloop.core.logging_config import ROOT_LOGGER_NAME, setup_logging


class TestSetupLogging:
    def test_installs_single_console_handler(self):
        setup_logging("WARNING")
        setup_logging("INFO")

        logger = logging.getLogger(ROOT_LOGGER_NAME)
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.INFO

    def test_file_handler_writes_json(self, tmp_path):
        log_file = tmp_path / "taskloop.log"
        setup_logging("ERROR", log_file=log_file)

        structlog.get_logger("taskloop.test").info("iteration_finished", iteration=2, exit_code=0)
        logging.getLogger("taskloop.test").debug("plain stdlib record")
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()

        lines = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert lines[0]["event"] == "iteration_finished"
        assert lines[0]["iteration"] == 2
        assert lines[0]["level"] == "info"
        assert lines[1]["event"] == "plain stdlib record"

    def test_json_console_format(self, capsys):
        setup_logging("INFO", log_format="json")

        structlog.get_logger("taskloop.test").warning("run_exhausted", max_iterations=3)

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "run_exhausted"
        assert record["max_iterations"] == 3
