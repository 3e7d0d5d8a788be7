import os
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_LINE_SEPARATORS = {"lf": b"\n", "crlf": b"\r\n"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    REDIS_URL: str = "redis://localhost:6379/0"
    UPLOADS_DIR: str = "/uploads"

    # read size handed to every reader
    CHUNK_SIZE: int = Field(default=16384, gt=0)
    # line separator in front of mbox "From " lines
    MBOX_LINE_ENDING: Literal["native", "lf", "crlf"] = "native"
    # publish task progress every this many messages
    PROGRESS_BATCH: int = Field(default=100, gt=0)

    @property
    def line_separator(self) -> bytes:
        return _LINE_SEPARATORS.get(self.MBOX_LINE_ENDING, os.linesep.encode("ascii"))


settings = Settings()
