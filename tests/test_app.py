import logging
import os

from taskboard.main import create_app


def file_handlers_for(path):
    path = os.path.abspath(path)
    return [
        handler
        for handler in logging.getLogger().handlers
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == path
    ]


def test_import_attaches_no_error_log():
    # taskboard.main builds a module-level app from the default settings
    assert file_handlers_for("error.log") == []


def test_create_app_leaves_logging_alone(settings, tmp_path):
    log_file = tmp_path / "error.log"
    create_app(settings.model_copy(update={"ERROR_LOG_FILE": str(log_file)}))

    assert file_handlers_for(log_file) == []
    assert not log_file.exists()


async def test_lifespan_installs_error_log(settings, tmp_path):
    log_file = tmp_path / "error.log"
    app = create_app(settings.model_copy(update={"ERROR_LOG_FILE": str(log_file)}))
    try:
        async with app.router.lifespan_context(app):
            assert len(file_handlers_for(log_file)) == 1
            logging.getLogger("taskboard.app").error("disk full")
        assert "disk full" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in file_handlers_for(log_file):
            logging.getLogger().removeHandler(handler)
            handler.close()
