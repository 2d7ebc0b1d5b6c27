"""
dumpload/validators package marker.
"""

from dumpload.validators.record_validator import RecordSchemaError, RecordSchemaValidator

__all__ = [
    "RecordSchemaError",
    "RecordSchemaValidator",
]
