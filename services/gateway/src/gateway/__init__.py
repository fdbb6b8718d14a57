"""HTTP host for consumer_image_styles: enhancement, schema and consumer endpoints."""
