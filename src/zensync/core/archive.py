"""
Module for packing profile folders into gzip-compressed tarballs.

Archives are rooted at the profile directory, so a folder ``bookmarkbackups``
is stored as ``bookmarkbackups/...`` and extracts back to the same place.
"""

import logging
import tarfile
from pathlib import Path
from typing import List, Union

from .errors import ArchiveError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class TarArchiver:
    """Creates and extracts ``.tar.gz`` archives of single folders."""

    def create(self, root_dir: PathLike, name: str, output_path: PathLike) -> Path:
        """
        Archive ``root_dir/name`` into ``output_path``.

        Args:
            root_dir: Directory the archive member paths are relative to
            name: Folder inside ``root_dir`` to archive
            output_path: Path of the ``.tar.gz`` file to write

        Returns:
            The path of the written archive

        Raises:
            ValueError: If the folder doesn't exist
            OSError: If the archive cannot be written
            ArchiveError: If tarfile refuses a member
        """
        source = Path(root_dir) / name
        output = Path(output_path)
        if not source.is_dir():
            raise ValueError(f"Source directory {source} does not exist")

        output.parent.mkdir(parents=True, exist_ok=True)
        try:
            with tarfile.open(output, "w:gz") as tar:
                tar.add(source, arcname=name)
        except tarfile.TarError as e:
            output.unlink(missing_ok=True)
            raise ArchiveError(output.name, str(e)) from e
        except OSError as e:
            output.unlink(missing_ok=True)
            raise OSError(f"Failed to create archive {output}: {e}") from e

        logger.debug("Archived %s into %s", source, output)
        return output

    def extract(self, archive_path: PathLike, destination: PathLike) -> List[str]:
        """
        Extract ``archive_path`` into ``destination``.

        Member paths that would escape ``destination`` are rejected by the
        ``data`` extraction filter.

        Returns:
            Names of the extracted members

        Raises:
            ValueError: If the archive doesn't exist
            ArchiveError: If the archive is not a readable gzip tarball or a
                member is refused by the filter
        """
        archive = Path(archive_path)
        target = Path(destination)
        if not archive.is_file():
            raise ValueError(f"Archive {archive} does not exist")

        target.mkdir(parents=True, exist_ok=True)
        try:
            with tarfile.open(archive, "r:gz") as tar:
                members = tar.getnames()
                tar.extractall(target, filter="data")
        except tarfile.TarError as e:
            raise ArchiveError(archive.name, str(e)) from e

        logger.debug("Extracted %d member(s) from %s into %s", len(members), archive, target)
        return members
