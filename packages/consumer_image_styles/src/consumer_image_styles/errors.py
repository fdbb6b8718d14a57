class ImageStylesError(Exception):
    """Base class for collaborator failures the enhancer knows how to absorb."""

class CatalogUnavailable(ImageStylesError):
    """Style definitions could not be loaded (missing or misconfigured catalog)."""

class EntityStorageError(ImageStylesError):
    """The entity repository failed while looking up a file."""

__all__ = ["ImageStylesError", "CatalogUnavailable", "EntityStorageError"]
