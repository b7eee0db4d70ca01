from __future__ import annotations

import datetime
import pathlib
import sys
import threading
from typing import (
    Dict,
    TypeVar,
)

from adminbus.logging.models import Entry, Log

from .logger_context import LoggerContext

T = TypeVar('T', bound=Entry)


def _split_logfile_path(path: str | None) -> tuple[str | None, str | None]:
    if not path:
        return None, None

    logfile_path = pathlib.Path(path)
    if len(logfile_path.suffix) > 0:
        return logfile_path.name, str(logfile_path.parent.absolute())

    return None, str(logfile_path.absolute())


class Logger:
    def __init__(self) -> None:
        self._contexts: Dict[str, LoggerContext] = {}

    def configure(
        self,
        name: str | None = None,
        path: str | None = None,
    ):
        if name is None:
            name = 'default'

        filename, directory = _split_logfile_path(path)

        self._contexts[name] = LoggerContext(
            name=name,
            filename=filename,
            directory=directory,
        )

    def context(self, name: str | None = None):
        if name is None:
            name = 'default'

        if self._contexts.get(name) is None:
            self._contexts[name] = LoggerContext(name=name)

        return self._contexts[name]

    async def log(
        self,
        entry: T,
        name: str | None = None,
        path: str | None = None,
    ):
        frame = sys._getframe(1)
        code = frame.f_code

        async with self.context(name=name) as ctx:
            await ctx.log(
                Log(
                    entry=entry,
                    filename=code.co_filename,
                    function_name=code.co_name,
                    line_number=frame.f_lineno,
                    thread_id=threading.get_native_id(),
                    timestamp=datetime.datetime.now(datetime.UTC).isoformat()
                ),
                path=path,
            )

    async def close(self):
        for context in self._contexts.values():
            await context.stream.close()
