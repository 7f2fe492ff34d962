"""Bundle several output files into a single ZIP download."""

import io
import zipfile
from typing import List, Tuple


class ArchiveBuilder:
    """Builds ZIP archives from named in-memory files."""

    def assemble(self, files: List[Tuple[str, bytes]]) -> bytes:
        """
        Write files into a deflated ZIP archive.

        Args:
            files: (member name, content) pairs, written in order

        Returns:
            The archive bytes

        Raises:
            ValueError: If no files are given or a name is used twice
        """
        if not files:
            raise ValueError("Nothing to archive")

        names = set()
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for name, content in files:
                if name in names:
                    raise ValueError(f"Duplicate file name in archive: {name}")
                names.add(name)
                archive.writestr(name, content)

        return buffer.getvalue()
