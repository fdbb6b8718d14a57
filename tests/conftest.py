"""
Global conftest for the image-styles tests.

1. A pretty unified-diff assertion helper for clearer dict-vs-dict failures.
2. Shared in-process collaborators (catalog, files, access policy) so every
   core test builds the enhancer the same way.
3. An autouse fixture that drops the gateway's registry cache between tests.
"""

import json
import difflib

import pytest

from consumer_image_styles import (
    Caller, DerivativeUrlBuilder, FileAccessPolicy, FileEntity, FileRepository,
    ImageStyle, StyleRegistry,
)


# --------------------------------------------------------------------------- #
# Pretty diff for dict comparisons                                            #
# --------------------------------------------------------------------------- #
def pytest_assertrepr_compare(op, left, right):
    """Pretty unified-diff output when comparing two dicts with ==."""
    if isinstance(left, dict) and isinstance(right, dict) and op == "==":
        lhs = json.dumps(left, indent=2, sort_keys=True, default=str).splitlines()
        rhs = json.dumps(right, indent=2, sort_keys=True, default=str).splitlines()
        return [""] + list(
            difflib.unified_diff(lhs, rhs, fromfile="left", tofile="right")
        )


# --------------------------------------------------------------------------- #
# Core collaborators                                                          #
# --------------------------------------------------------------------------- #
CAT_UUID = "2c3e8f0a-5b1d-4c6e-9a7f-1d2b3c4d5e6f"
PRIVATE_UUID = "9b8a7c6d-1e2f-4a3b-8c9d-0e1f2a3b4c5d"
TEMP_UUID = "4f5e6d7c-8b9a-4011-a2b3-c4d5e6f7a8b9"
PDF_UUID = "0a1b2c3d-4e5f-4607-8899-aabbccddeeff"


@pytest.fixture
def file_ids():
    return {"cat": CAT_UUID, "private": PRIVATE_UUID, "temp": TEMP_UUID, "pdf": PDF_UUID}


@pytest.fixture
def url_builder():
    return DerivativeUrlBuilder(
        "https://cdn.example.com",
        public_files_path="/files",
        private_files_path="/system/files",
        private_key="test-key",
        hash_salt="salt",
    )


@pytest.fixture
def catalog(url_builder):
    return StyleRegistry(
        [
            ImageStyle(id="thumbnail", label="Thumbnail"),
            ImageStyle(id="medium", label="Medium"),
            ImageStyle(id="large", label="Large"),
            ImageStyle(id="hero_webp", label="Hero", derivative_extension="webp"),
        ],
        url_builder,
    )


@pytest.fixture
def files():
    return FileRepository(
        [
            FileEntity(uuid=CAT_UUID, filename="cat.jpg", uri="public://2024-05/cat.jpg", owner_id="7"),
            FileEntity(uuid=PRIVATE_UUID, filename="scan.png", uri="private://scans/scan.png",
                       owner_id="7", view_roles=("editor",)),
            FileEntity(uuid=TEMP_UUID, filename="upload.gif", uri="public://tmp/upload.gif",
                       owner_id="12", status=False),
            FileEntity(uuid=PDF_UUID, filename="brochure.pdf", uri="public://docs/brochure.pdf", owner_id="7"),
        ]
    )


@pytest.fixture
def access():
    return FileAccessPolicy(("administrator",))


@pytest.fixture
def anonymous():
    return Caller()


@pytest.fixture
def image_value():
    return {"type": "file--file", "id": CAT_UUID, "meta": {"alt": "A cat", "width": 640}}


# --------------------------------------------------------------------------- #
# Gateway isolation                                                           #
# --------------------------------------------------------------------------- #
@pytest.fixture(autouse=True)
def _reset_registry_cache():
    yield
    try:
        from gateway.registry import reset_registry_cache
    except ModuleNotFoundError:
        return
    reset_registry_cache()
