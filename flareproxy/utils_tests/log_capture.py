import logging
from contextlib import contextmanager


@contextmanager
def capture_uvicorn_logs(caplog, level=logging.INFO):
    """Attach pytest's capture handler to ``uvicorn.error``.

    uvicorn's logging config stops propagation at the ``uvicorn`` logger, so
    records never reach the root handler caplog installs by default.
    """
    logger = logging.getLogger("uvicorn.error")
    orig_level = logger.level
    logger.addHandler(caplog.handler)
    logger.setLevel(level)
    caplog.handler.setLevel(level)
    try:
        yield caplog
    finally:
        logger.removeHandler(caplog.handler)
        logger.setLevel(orig_level)
