import logging

from marketplace.config import get_log_level

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging():
    logging.basicConfig(
        level=get_log_level(),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Stripe's client logs every request at INFO
    logging.getLogger("stripe").setLevel(logging.WARNING)
