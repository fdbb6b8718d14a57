"""
Public API for the core_validator package.

JSON Schema validators for the image-styles field contract.
Import from here in services to avoid drift.
"""

from .validator import (  # noqa: F401
    validate_enhanced_field,
    reset_validator_cache,
)

__all__ = [
    "validate_enhanced_field",
    "reset_validator_cache",
]
