"""
Unit tests for logging helpers.
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture
def captured():
    from loguru import logger
    from pml_et.utils.logger import Logger

    Logger.configure_for_testing()
    messages = []
    sink_id = logger.add(lambda message: messages.append(message.record), level="DEBUG")
    yield messages
    logger.remove(sink_id)


class TestLogStep:
    """Test the log_step context manager."""

    def test_success_logs_duration(self, captured):
        from pml_et.utils.logger import log_step

        with log_step("Forcing 2010"):
            pass

        info = [r for r in captured if r["level"].name == "INFO"]
        assert len(info) == 1
        assert "Forcing 2010 done in" in info[0]["message"]

    def test_failure_reraises(self, captured):
        from pml_et.utils.logger import log_step

        with pytest.raises(ValueError):
            with log_step("Temporal aggregation 2010"):
                raise ValueError("bad window")

        errors = [r for r in captured if r["level"].name == "ERROR"]
        assert "bad window" in errors[0]["message"]


class TestLoggerSetup:
    """Test sink configuration."""

    def test_file_sink(self, tmp_path):
        from loguru import logger
        from pml_et.utils.logger import Logger

        log_file = tmp_path / "logs" / "run.log"
        Logger.setup(name="file_test", log_file=str(log_file), level="INFO", console=False)
        logger.info("written to file")
        Logger.configure_for_testing()

        assert log_file.exists()
        assert "written to file" in log_file.read_text()

    def test_execution_time_decorator(self, captured):
        from pml_et.utils.logger import log_execution_time

        @log_execution_time
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        assert any("took" in r["message"] for r in captured)
