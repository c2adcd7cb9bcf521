from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    # basicConfig ничего не делает, если root уже настроен
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("rpgcombat").setLevel(level)
