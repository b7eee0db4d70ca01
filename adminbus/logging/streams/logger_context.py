import asyncio
import os

from .logger_stream import LoggerStream


class LoggerContext:
    def __init__(
        self,
        name: str | None = None,
        filename: str | None = None,
        directory: str | None = None,
    ) -> None:
        self.name = name
        self.filename = filename
        self.directory = directory
        self.stream = LoggerStream(
            name=name,
            filename=filename,
            directory=directory,
        )

    async def __aenter__(self):
        await self.stream.initialize()

        if self.stream._cwd is None:
            loop = asyncio.get_running_loop()
            self.stream._cwd = await loop.run_in_executor(
                None,
                os.getcwd,
            )

        if self.filename and self.stream._default_logfile_path is None:
            await self.stream.open_file(
                self.filename,
                directory=self.directory,
                is_default=True,
            )

        return self.stream

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        # Logger.close() closes the stream.
        pass
