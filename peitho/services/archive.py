"""
Archive extraction for workload TLS material.

Peers upload the TLS credentials of a workload as a gzip-compressed tar.
Directory structure is discarded: every file or link entry is keyed by its
base filename, links resolving to the content of their target, so the result can be projected straight into a ConfigMap.
"""

import io
import logging
import posixpath
import tarfile
import zlib
from typing import BinaryIO, Dict, Optional, Union

from .errors import ArchiveCorruptError, EmptyContentError
from .orchestration.modes import ProvisioningVariant

logger = logging.getLogger(__name__)

ArchiveSource = Union[bytes, bytearray, BinaryIO]


def extract_tls_material(content: Optional[ArchiveSource]) -> Dict[str, str]:
    """
    Read every file of a tar.gz stream into memory.

    Args:
        content: Raw archive bytes or a readable binary stream

    Returns:
        Mapping of base filename to file content

    Raises:
        EmptyContentError: If content is None
        ArchiveCorruptError: If the stream is not a valid gzip-compressed tar
    """
    if content is None:
        logger.error("[ARCHIVE] content is nil")
        raise EmptyContentError()

    # Links may point backwards in the archive, so it has to be seekable
    if isinstance(content, (bytes, bytearray)):
        fileobj = io.BytesIO(content)
    else:
        fileobj = io.BytesIO(content.read())

    files: Dict[str, str] = {}

    try:
        with tarfile.open(fileobj=fileobj, mode="r:gz") as archive:
            for member in archive:
                logger.debug(f"[ARCHIVE] Untarring {member.name}")
                if member.isdir():
                    continue

                file_name = posixpath.basename(member.name.rstrip("/"))
                files[file_name] = _read_member(archive, member)
    except (tarfile.TarError, zlib.error, EOFError, OSError, UnicodeDecodeError) as e:
        logger.error(f"[ARCHIVE] Uncompress archive failed: {e}")
        raise ArchiveCorruptError(f"uncompress archive failed: {e}") from e

    logger.info(f"[ARCHIVE] Extracted {len(files)} files: {sorted(files)}")
    return files


def _read_member(archive: tarfile.TarFile, member: tarfile.TarInfo) -> str:
    try:
        extracted = archive.extractfile(member)
    except KeyError:
        logger.warning(f"[ARCHIVE] Link {member.name} -> {member.linkname} has no target in the archive")
        return ""

    # device and fifo entries carry no data
    if extracted is None:
        return ""
    return extracted.read().decode("utf-8")


def provisioning_variant(files: Dict[str, str]) -> ProvisioningVariant:
    """Choose the mount layout for the extracted TLS material."""
    return ProvisioningVariant.for_file_count(len(files))
