"""
dumpload/repositories package marker.
"""

from dumpload.repositories.dump_table_repository import DumpTableRepository, PartialApplyError

__all__ = [
    "DumpTableRepository",
    "PartialApplyError",
]
