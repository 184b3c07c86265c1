import logging


def configure_logging(level=logging.INFO):
    """Send application logs to a single stream handler"""
    logger = logging.getLogger()
    logger.setLevel(level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
