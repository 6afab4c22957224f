import logging

NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def configure(level="INFO", verbose=False):
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(levelname)s %(name)s - %(message)s"
    )
    if not verbose:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
