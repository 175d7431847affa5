"""Logging configuration.

This is a central place for configuring the logging library, so that
all log messages have the same format. Define a module based logger
like this:

``` python
from custom_builds.app_config import logging

logger = logging.getLogger(__name__)
```

The `getLogger` function of this module only delegates to the logging
library, making sure the logger name is always below `custom_builds`.

Log messages about a single build can be tagged with a `LoggerAdapter`
carrying a request id (for builds, `namespace/name`):

``` python
logger = logging.with_request_id(logger, "ns1/my-build-1")
```

Run `configure_logging()` once at process start, before logging.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from logging import Logger, LoggerAdapter
from typing import Any, Final, cast, final

from custom_builds.errors.errors import ConfigurationError

__app_root_logger: Final[str] = "custom_builds"


def getLogger(name: str) -> Logger:
    """Return a logger with the name prefixed with our app name, if not already done."""
    if name == __app_root_logger or name.startswith(__app_root_logger + "."):
        return logging.getLogger(name)
    else:
        return logging.getLogger(f"{__app_root_logger}.{name}")


def with_request_id(logger: Logger, request_id: str) -> LoggerAdapter:
    """Amend `logger` adding `request_id` to every log message."""
    return _RequestIdAdapter.create(logger, request_id)


class _BuildLogFormatter(logging.Formatter):
    """Plain text formatter using datetime instead of struct_time."""

    def __init__(self) -> None:
        super().__init__(
            fmt=(
                "%(asctime)s [%(levelname)s] %(process)d/%(threadName)s "
                "%(name)s (%(filename)s:%(lineno)d) - %(message)s"
            ),
            datefmt="%Y-%m-%dT%H:%M:%S.%f%z",
        )

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        """Overriden to format the time string for %(asctime) interpolator."""
        ct = datetime.fromtimestamp(record.created)
        return ct.strftime(cast(str, self.datefmt))


class _BuildJsonFormatter(_BuildLogFormatter):
    """Formatter to produce json log messages."""

    fields: Final[set[str]] = set(
        [
            "name",
            "levelno",
            "pathname",
            "module",
            "filename",
            "lineno",
        ]
    )
    default_fields: Final[set[str]] = set(fields).union(
        set(logging.LogRecord("", 0, "", 0, None, None, None).__dict__.keys()),
        set(["exc_info", "stack_info", "asctime", "message", "msg"]),
    )

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record."""
        super().format(record)
        return json.dumps(self._to_dict(record), default=str)

    def _to_dict(self, record: logging.LogRecord) -> dict:
        base = {field: getattr(record, field, None) for field in self.fields}
        extra = {key: value for key, value in record.__dict__.items() if key not in self.default_fields}
        info = {}
        if record.exc_info:
            info["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            info["stack_info"] = self.formatStack(record.stack_info)
        return {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            **base,
            **info,
            **extra,
        }


class LogFormatStyle(StrEnum):
    """Supported log formats."""

    plain = "plain"
    json = "json"

    def to_formatter(self) -> logging.Formatter:
        """Return the formatter instance corresponding to this format style."""
        match self:
            case LogFormatStyle.plain:
                return _BuildLogFormatter()
            case LogFormatStyle.json:
                return _BuildJsonFormatter()

    @classmethod
    def from_env(cls, prefix: str = "") -> LogFormatStyle:
        """Read the format style from env var `LOG_FORMAT_STYLE`."""
        str_value = os.environ.get(f"{prefix}LOG_FORMAT_STYLE", "plain").lower()
        match str_value:
            case "json":
                return LogFormatStyle.json
            case _:
                return LogFormatStyle.plain


@final
class _Utils:
    @classmethod
    def get_numeric_level(cls, level_name: str) -> int:
        ln = logging.getLevelNamesMapping().get(level_name.upper())
        if ln is None:
            raise ConfigurationError(message=f"Logging config problem: level name '{level_name}' is not known.")
        return ln

    @classmethod
    def _logger_list_from_env(cls, level: int, prefix: str) -> set[str]:
        level_name = logging.getLevelName(level)
        key = f"{prefix}{level_name.upper()}_LOGGING"
        value = os.environ.get(key, "").strip()
        if value == "":
            return set()

        return set(n.strip() for n in value.split(",") if n.strip() != "")

    @classmethod
    def logger_levels_from_env(cls, prefix: str = "") -> dict[int, set[str]]:
        config = {}
        for level in set(logging.getLevelNamesMapping().values()):
            logger_names = cls._logger_list_from_env(level, prefix)
            if logger_names:
                config.update({level: logger_names})

        return config

    @classmethod
    def get_all_loggers(cls) -> list[logging.Logger]:
        """Return the current snapshot of all loggers, including the root logger."""
        all_loggers = [log for log in logging.Logger.manager.loggerDict.values() if isinstance(log, logging.Logger)]
        all_loggers.append(logging.root)
        return all_loggers


@dataclass
class Config:
    """Configuration for logging."""

    format_style: LogFormatStyle = LogFormatStyle.plain
    root_level: int = logging.WARNING
    app_level: int = logging.INFO
    override_levels: dict[int, set[str]] = field(default_factory=dict)

    def update_override_levels(self, others: dict[int, set[str]]) -> None:
        """Merge `others` into the override levels, a logger name only appears at its last given level."""
        for level, names in others.items():
            for other_names in self.override_levels.values():
                other_names.difference_update(names)
            self.override_levels.setdefault(level, set()).update(names)
        self.override_levels = {level: names for level, names in self.override_levels.items() if names}

    @classmethod
    def from_env(cls, prefix: str = "") -> Config:
        """Return a config obtained from environment variables."""
        root_level = _Utils.get_numeric_level(os.environ.get(f"{prefix}LOG_ROOT_LEVEL", "WARNING"))
        app_level = _Utils.get_numeric_level(os.environ.get(f"{prefix}LOG_APP_LEVEL", "INFO"))
        format_style = LogFormatStyle.from_env(prefix)
        levels = _Utils.logger_levels_from_env(prefix)
        return Config(format_style, root_level, app_level, levels)


class _RequestIdAdapter(LoggerAdapter):
    """Adapter for adding a request id to log messages."""

    def process(self, msg: str, kwargs: MutableMapping[str, Any]) -> tuple[str, MutableMapping[str, Any]]:
        """Implement process."""
        extra: Mapping[str, object] = self.extra if self.extra is not None else {}
        rid = extra.get("request_id")
        if rid is None:
            return msg, kwargs
        else:
            if "extra" in kwargs:
                kwargs["extra"] = {**extra, **kwargs["extra"]}
            else:
                kwargs["extra"] = self.extra
            return f"[{rid}] {msg}", kwargs

    @classmethod
    def create(cls, logger: Logger, request_id: str) -> LoggerAdapter:
        """Create a logger adapter that automatically adds the given `request_id` to each log message."""
        return _RequestIdAdapter(logger, {"request_id": request_id})


def configure_logging(cfg: Config | None = None) -> None:
    """Configures logging library.

    This should run before using a logger. It sets all loggers to
    WARNING, except for our code that will log at INFO. Our code is
    identified by the app root logger `custom_builds`.

    Level for individual loggers can be overriden using the
    `override_levels` argument. It is a map from logging level to a
    set of logger names. The default reads it from environment
    variables like `DEBUG_LOGGING=logger.name.one,logger.name.two`.
    """
    if cfg is None:
        cfg = Config.from_env()

    # There is only one handler, on the root logger. Imported modules may
    # add their own at any time, this removes them as a best effort.
    for ll in _Utils.get_all_loggers():
        ll.setLevel(logging.NOTSET)
        for hdl in list(ll.handlers):
            ll.removeHandler(hdl)

    handler = logging.StreamHandler()
    handler.setFormatter(cfg.format_style.to_formatter())
    logging.root.setLevel(cfg.root_level)
    logging.root.addHandler(handler)
    logging.getLogger(__app_root_logger).setLevel(cfg.app_level)

    logger = getLogger(__name__)

    for level, names in cfg.override_levels.items():
        for name in names:
            logger.info(f"Set threshold level: {name} -> {logging.getLevelName(level)}")
            logging.getLogger(name).setLevel(level)
