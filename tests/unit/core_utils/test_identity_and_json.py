from core_http.headers import header_value
from core_utils import generate_request_id, jsonx
from core_utils.identity import identity_from_headers


def test_identity_from_headers_normalises_roles():
    ident = identity_from_headers({"x-user-id": " 7 ", "X-User-Roles": "Editor, viewer,editor,,"})
    assert ident == {"user_id": "7", "roles": ["editor", "viewer"]}


def test_identity_defaults_to_anonymous():
    assert identity_from_headers({}) == {"user_id": "", "roles": []}


def test_header_value_is_case_insensitive_and_ignores_blanks():
    assert header_value({"x-consumer-id": " web "}, "X-Consumer-ID") == "web"
    assert header_value({"X-Consumer-ID": "   "}, "x-consumer-id") is None


def test_jsonx_roundtrip_is_sorted_and_strips_bom():
    raw = jsonx.dumps({"b": 1, "a": {"z": [1, 2]}})
    assert raw == '{"a":{"z":[1,2]},"b":1}'
    assert jsonx.loads("\ufeff" + raw) == {"a": {"z": [1, 2]}, "b": 1}


def test_request_ids_are_unique():
    ids = {generate_request_id() for _ in range(50)}
    assert len(ids) == 50
    assert all(len(i) == 16 for i in ids)
