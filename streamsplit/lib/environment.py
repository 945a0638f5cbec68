#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
A common interface to all streamsplit configuration settings available via environment variables.
This module is also host to the logging configuration.
"""
from __future__ import annotations

import os
import logging

import colorama

from enum import IntEnum
from typing import Optional, TypeVar, Generic

_T = TypeVar('_T')

Logger = logging.Logger


class LogLevel(IntEnum):
    """
    An enumeration representing the current log level:
    """
    DETACHED = logging.CRITICAL + 100
    """
    The object has been instantiated in code and is not attached to a terminal. It does not
    produce any log output.
    """
    NONE = logging.CRITICAL + 50

    @classmethod
    def FromVerbosity(cls, verbosity: int):
        if verbosity < 0:
            return cls.DETACHED
        return {
            0: cls.WARNING,
            1: cls.INFO,
            2: cls.DEBUG
        }.get(verbosity, cls.DEBUG)

    NOTSET   = logging.NOTSET    # noqa
    CRITICAL = logging.CRITICAL  # noqa
    FATAL    = logging.FATAL     # noqa
    ERROR    = logging.ERROR     # noqa
    WARNING  = logging.WARNING   # noqa
    WARN     = logging.WARN      # noqa
    INFO     = logging.INFO      # noqa
    DEBUG    = logging.DEBUG     # noqa


class EnvironmentVariableSetting(Generic[_T]):
    key: str
    value: Optional[_T]

    def __init__(self, name: str):
        self.key = F'STREAMSPLIT_{name}'
        self.value = self.read()

    def read(self) -> _T:
        return None


class EVBool(EnvironmentVariableSetting[bool]):
    def read(self):
        value = os.environ.get(self.key, None)
        if value is None:
            return False
        else:
            value = value.lower().strip()
        if not value:
            return False
        if value.isdigit():
            return bool(int(value))
        return value not in {'no', 'off', 'false'}


class EVInt(EnvironmentVariableSetting[int]):
    def read(self):
        try:
            return int(os.environ[self.key], 0)
        except (KeyError, ValueError):
            return 0


class EVLog(EnvironmentVariableSetting[Optional[LogLevel]]):
    def read(self):
        try:
            loglevel = os.environ[self.key]
        except KeyError:
            return None
        if loglevel.isdigit():
            return LogLevel.FromVerbosity(int(loglevel))
        try:
            loglevel = LogLevel[loglevel.upper()]
        except KeyError:
            levels = ', '.join(ll.name for ll in LogLevel)
            logger(__name__).warning(
                F'ignoring unknown verbosity "{loglevel!r}"; pick from: {levels}')
            return None
        else:
            return loglevel


class environment:
    verbosity = EVLog('VERBOSITY')
    colorless = EVBool('COLORLESS')
    chunk_size = EVInt('CHUNK_SIZE')


class SplitterFormatter(logging.Formatter):

    NAMES = {
        logging.CRITICAL : 'failure',
        logging.ERROR    : 'failure',
        logging.WARNING  : 'warning',
        logging.INFO     : 'comment',
        logging.DEBUG    : 'verbose',
    }

    COLORS = {
        logging.CRITICAL : colorama.Fore.LIGHTRED_EX,
        logging.ERROR    : colorama.Fore.LIGHTRED_EX,
        logging.WARNING  : colorama.Fore.LIGHTYELLOW_EX,
        logging.INFO     : colorama.Fore.LIGHTCYAN_EX,
        logging.DEBUG    : colorama.Fore.LIGHTBLACK_EX,
    }

    def __init__(self, format, colorless: bool = True, **kwargs):
        super().__init__(format, **kwargs)
        self.colorless = colorless

    def formatMessage(self, record: logging.LogRecord) -> str:
        name = self.NAMES.get(record.levelno, record.levelname.lower())
        if not self.colorless:
            color = self.COLORS.get(record.levelno, '')
            name = F'{color}{name}{colorama.Style.RESET_ALL}'
        record.custom_level_name = name
        return super().formatMessage(record)


def logger(name: str) -> logging.Logger:
    """
    Obtain a logger which is configured with the default streamsplit format.
    """
    logger = logging.getLogger(name)
    if not logger.hasHandlers():
        colorless = environment.colorless.value
        stream = logging.StreamHandler()
        if not colorless:
            stream.setStream(colorama.AnsiToWin32(stream.stream).stream)
        stream.setFormatter(SplitterFormatter(
            '({asctime}) {custom_level_name} in {name}: {message}',
            colorless=colorless,
            style='{',
            datefmt='%H:%M:%S',
        ))
        logger.addHandler(stream)
    logger.propagate = False
    return logger


class Loggable:
    """
    Base class for all objects that report their progress through a logger. The logger is shared
    between all instances of a class and named after its module. Objects are detached by default,
    unless a verbosity is configured via the `STREAMSPLIT_VERBOSITY` environment variable.
    """
    _logger: Logger

    @classmethod
    def _get_logger(cls) -> Logger:
        try:
            return cls.__dict__['_logger']
        except KeyError:
            pass
        cls._logger = _logger = logger(F'{cls.__module__}.{cls.__name__}')
        _logger.setLevel(environment.verbosity.value or LogLevel.DETACHED)
        return _logger

    @property
    def logger(self) -> Logger:
        return self._get_logger()

    @property
    def log_level(self) -> LogLevel:
        """
        Returns the current log level as an element of `streamsplit.lib.environment.LogLevel`.
        """
        return LogLevel(self.logger.getEffectiveLevel())

    @log_level.setter
    def log_level(self, value: int | LogLevel) -> None:
        if not isinstance(value, LogLevel):
            value = LogLevel.FromVerbosity(value)
        self.logger.setLevel(value)

    def log_detach(self):
        """
        Detach this object from its logger; no log output will be generated afterwards.
        """
        self.log_level = LogLevel.DETACHED
        return self

    @classmethod
    def log_fail(cls, *messages) -> bool:
        """
        Log the message if and only if the current log level is at least `LogLevel.ERROR`.
        """
        return cls._log(LogLevel.ERROR, messages)

    @classmethod
    def log_warn(cls, *messages) -> bool:
        """
        Log the message if and only if the current log level is at least `LogLevel.WARNING`.
        """
        return cls._log(LogLevel.WARNING, messages)

    @classmethod
    def log_info(cls, *messages) -> bool:
        """
        Log the message if and only if the current log level is at least `LogLevel.INFO`.
        """
        return cls._log(LogLevel.INFO, messages)

    @classmethod
    def log_debug(cls, *messages) -> bool:
        """
        Log the message if and only if the current log level is at least `LogLevel.DEBUG`.
        """
        return cls._log(LogLevel.DEBUG, messages)

    @classmethod
    def _log(cls, level: LogLevel, messages) -> bool:
        logger = cls._get_logger()
        rv = logger.isEnabledFor(level)
        if rv and messages:
            logger.log(level, ' '.join(str(m) for m in messages))
        return rv
