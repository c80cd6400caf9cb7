import logging

from orbitalsim.logging_config import setup_logging


def test_setup_logging_replaces_handlers(tmp_path):
    log_file = tmp_path / "run.log"
    try:
        setup_logging(logging.DEBUG)
        logger = setup_logging(logging.INFO, str(log_file))
        assert logger.name == "orbitalsim"
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 2

        logging.getLogger("orbitalsim.simulation").info("hello from a module")
        for handler in logger.handlers:
            handler.flush()
        assert "orbitalsim.simulation - INFO - hello from a module" in log_file.read_text()
    finally:
        logger = logging.getLogger("orbitalsim")
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
