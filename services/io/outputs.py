"""
Output containers - Named persistent storage for job results.

Entries are keyed by name; writing the same name twice is a configuration
error, never a silent overwrite.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Optional
import hist
import uproot

from domain.errors import DuplicateNameError


class OutputContainer(ABC):
    """Base class for output containers."""

    def __init__(self):
        self._names: list[str] = []
        self.logger = logging.getLogger(self.__class__.__name__)

    def put_histogram(self, name: str, histogram: hist.Hist):
        """Store a histogram (bin edges, contents, sum of squared weights)."""
        self._claim(name)
        self._write_histogram(name, histogram)

    def put_text(self, name: str, text: str):
        """Store a text entry such as a cutflow table."""
        self._claim(name)
        self._write_text(name, text)

    def _claim(self, name: str):
        if name in self._names:
            raise DuplicateNameError("output entry", name)
        self._names.append(name)

    @abstractmethod
    def _write_histogram(self, name: str, histogram: hist.Hist):
        pass

    @abstractmethod
    def _write_text(self, name: str, text: str):
        pass

    @property
    def names(self) -> list[str]:
        return list(self._names)

    def close(self):
        """Flush and release resources."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class MemoryOutput(OutputContainer):
    """In-memory container, mostly for tests and interactive use."""

    def __init__(self):
        super().__init__()
        self.histograms: dict[str, hist.Hist] = {}
        self.texts: dict[str, str] = {}

    def _write_histogram(self, name: str, histogram: hist.Hist):
        self.histograms[name] = histogram.copy()

    def _write_text(self, name: str, text: str):
        self.texts[name] = text


class RootOutput(OutputContainer):
    """
    ROOT file written with uproot.

    Histograms become TH1D/TH2D with Sumw2; text entries become TObjString.
    The file is created on the first write.
    """

    def __init__(self, path: str):
        super().__init__()
        self.path = path
        self._file: Optional[uproot.WritableDirectory] = None
        self._closed = False

    def _write_histogram(self, name: str, histogram: hist.Hist):
        self._require_open()[name] = histogram

    def _write_text(self, name: str, text: str):
        self._require_open()[name] = text

    def _require_open(self):
        if self._closed:
            raise RuntimeError(f"Output file {self.path} is already closed")
        if self._file is None:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            self._file = uproot.recreate(self.path)
            self.logger.info(f"Opened output file: {self.path}")
        return self._file

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None
            self.logger.info(f"Wrote {len(self._names)} entries to {self.path}")
        self._closed = True
