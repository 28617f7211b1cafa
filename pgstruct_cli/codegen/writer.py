"""Generated file output."""

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Union

from ..errors import OutputError
from .generator import GeneratedFile

logger = logging.getLogger(__name__)


class OutputWriter:
    """Writes generated files into one output directory.

    Each file is written to a temporary file in the same directory and then
    renamed over the target, so a target is either absent, the previous
    version, or the complete new content.
    """

    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)
        self.written: List[Path] = []

    def write(self, generated: GeneratedFile) -> Path:
        """Write one file and return its path.

        Raises:
            OutputError: the directory or file could not be written.
        """
        target = self.output_dir / generated.filename
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.output_dir, prefix=f".{generated.filename}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(generated.content)
                os.replace(tmp_path, target)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise OutputError(str(target), e.strerror or str(e)) from e

        logger.debug("Wrote %s (%s)", target, generated.qualified_name)
        self.written.append(target)
        return target
