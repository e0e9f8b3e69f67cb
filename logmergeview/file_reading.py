from __future__ import annotations

import abc
import gzip
from pathlib import Path


class FileReader:
    """
    Reads the raw bytes of an input file. Subclasses handle particular file
    types, selected by file name; TextFileReader is the fallback.
    """
    @classmethod
    def get_reader(cls, name: str) -> FileReader:
        for subcls in cls.__subclasses__():
            if subcls is TextFileReader:
                continue
            if subcls._can_read(name):
                return subcls(name)
        return TextFileReader(name)

    @classmethod
    @abc.abstractmethod
    def _can_read(cls, fname: str) -> bool:
        """Override in subclasses"""

    @abc.abstractmethod
    def read_bytes(self) -> bytes:
        """Override in subclasses"""

    def __init__(self, file_name: str):
        self.file_name = file_name

    @property
    def display_name(self) -> str:
        """Name used to identify this file in the merged output."""
        return Path(self.file_name).name


class TextFileReader(FileReader):
    @classmethod
    def _can_read(cls, fname: str) -> bool:
        return True

    def read_bytes(self) -> bytes:
        return Path(self.file_name).read_bytes()


class GzipFileReader(FileReader):
    @classmethod
    def _can_read(cls, fname: str) -> bool:
        return fname.endswith(".gz")

    def read_bytes(self) -> bytes:
        with gzip.open(self.file_name, "rb") as gz_file:
            return gz_file.read()

    @property
    def display_name(self) -> str:
        # app.log.gz is shown as app.log
        return Path(self.file_name).name.removesuffix(".gz")
