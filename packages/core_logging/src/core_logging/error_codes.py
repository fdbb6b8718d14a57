from enum import Enum

class ErrorCode(str, Enum):
    """
    Canonical error codes for the public error envelope and for
    ``record_error`` crumbs.
    """
    validation_failed         = "validation_failed"
    internal                  = "internal"
    registry_unavailable      = "registry_unavailable"
    catalog_unavailable       = "catalog_unavailable"
    entity_storage_error      = "entity_storage_error"
    access_check_failed       = "access_check_failed"
    enhancement_failed        = "enhancement_failed"
    output_schema_violation   = "output_schema_violation"

__all__ = ["ErrorCode"]
