"""
Unit tests for logging setup.

WHAT: Test handler installation and transport log capping
WHY: Negotiation logs must stay readable and optionally land on disk
HOW: Call setup_logging with overrides, restore the root logger afterwards
"""

import logging

import pytest

from negotiation_client.utils.logger import TRANSPORT_LOGGERS, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
class TestSetupLogging:
    """Test root logger configuration."""

    def test_console_only_without_file(self, restore_root_logger):
        root = setup_logging(level="debug", log_file="")

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert not isinstance(root.handlers[0], logging.FileHandler)

    def test_file_handler_created(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "client.log"

        root = setup_logging(level="INFO", log_file=str(log_file))

        file_handlers = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].level == logging.DEBUG
        assert log_file.parent.is_dir()

    def test_transport_loggers_capped(self, restore_root_logger):
        setup_logging(level="DEBUG", log_file="")

        for name in TRANSPORT_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
