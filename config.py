#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging
import os
import sys
from dataclasses import dataclass
from typing import Mapping, Optional

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class AppConfig:
    db_path: str = "focus_logger.db"
    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT

    def validate(self) -> None:
        errors = []
        if not self.db_path:
            errors.append("FOCUS_DB_PATH must not be empty")
        if self.log_level not in LOG_LEVELS:
            errors.append(
                f"FOCUS_LOG_LEVEL={self.log_level!r} is not one of {', '.join(LOG_LEVELS)}"
            )
        if errors:
            raise ValueError(
                "Configuration errors:\n" + "\n".join(f"- {e}" for e in errors)
            )


def load_config(env: Optional[Mapping[str, str]] = None, **overrides) -> AppConfig:
    """Environment first, then explicit overrides (CLI flags); None is ignored."""
    env = os.environ if env is None else env
    cfg = AppConfig(
        db_path=env.get("FOCUS_DB_PATH", "focus_logger.db"),
        log_level=env.get("FOCUS_LOG_LEVEL", "INFO").upper(),
        log_format=env.get("FOCUS_LOG_FORMAT", DEFAULT_LOG_FORMAT),
    )
    for key, value in overrides.items():
        if value is not None:
            setattr(cfg, key, value)
    cfg.log_level = cfg.log_level.upper()
    cfg.validate()
    return cfg


def setup_logging(cfg: AppConfig) -> logging.Logger:
    logging.basicConfig(
        level=getattr(logging, cfg.log_level),
        format=cfg.log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    return logging.getLogger("focus_logger")
