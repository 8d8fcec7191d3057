import logging

from fmsynth.diagnostics import configure_logging


def test_configure_logging_replaces_its_handlers(tmp_path):
    log_path = tmp_path / "logs" / "render.log"

    logger = configure_logging(verbose=False, log_path=log_path)
    logger = configure_logging(verbose=True, log_path=log_path)

    owned = [h for h in logger.handlers if getattr(h, "_fmsynth_handler", False)]
    assert len(owned) == 2
    assert logger.level == logging.DEBUG

    logging.getLogger("fmsynth.voices").debug("voice on 4c")
    for handler in owned:
        handler.flush()
    assert "voice on 4c" in log_path.read_text(encoding="utf-8")

    configure_logging()
    owned = [h for h in logger.handlers if getattr(h, "_fmsynth_handler", False)]
    assert len(owned) == 1
    assert logger.level == logging.WARNING
