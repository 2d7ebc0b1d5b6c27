"""
dumpload/connectors package marker.
"""

from dumpload.connectors.dump_archive import ArchiveFetchError, DumpArchiveConnector, extract_archive

__all__ = [
    "ArchiveFetchError",
    "DumpArchiveConnector",
    "extract_archive",
]
