"""Shared constants for the image-styles service and its core package."""

# Enhancer identity (the field enhancer id as registered by hosts).
ENHANCER_ID = "image_styles"
ENHANCER_LABEL = "Image Styles (Image field)"

# Relation URI declared on derivative links unless a style overrides it.
DERIVATIVE_LINK_REL = "urn:consumer-image-styles:link-relation:derivative"

# Derivative URL rule
ITOK_QUERY_PARAM = "itok"
ITOK_LENGTH = 8
DEFAULT_SCHEME = "public"
STYLES_DIRECTORY = "styles"

# Raster formats the image toolkit can derive from.
DEFAULT_IMAGE_EXTENSIONS = ("png", "jpg", "jpeg", "jpe", "gif", "webp")

# Consumer negotiation inputs
CONSUMER_ID_QUERY_PARAM = "_consumer_id"
