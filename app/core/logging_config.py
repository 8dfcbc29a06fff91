"""Настраивает логирование приложения."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    # Настраиваем корневой логгер один раз при старте приложения.
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level.upper())
        return
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # httpx пишет каждый запрос к классификатору на уровне INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
