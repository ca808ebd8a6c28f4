"""Body Validation over HTTP: status codes and envelopes for rejected create bodies.

Invariants:
    - 400 for classifier rejections, 415 for a non-JSON media type, 413 for oversize bodies
    - Rejected bodies never reach the store
"""

import pytest

JSON = {"Content-Type": "application/json"}


async def _post(client, body: bytes, headers=None):
    return await client.post("/users", content=body, headers=headers or JSON)


@pytest.mark.parametrize(
    "body, code",
    [
        (b"", "EMPTY_BODY"),
        (b"   \n", "EMPTY_BODY"),
        (b'{"name": "a",}', "BADLY_FORMED_JSON"),
        (b'{"name": "a"', "BADLY_FORMED_JSON"),
        (b'{"name": 123, "email": "b"}', "TYPE_MISMATCH"),
        (b'{"name": "a", "email": "b", "unexpected": 1}', "UNKNOWN_FIELD"),
        (b"{}{}", "MULTIPLE_OBJECTS"),
    ],
)
async def test_rejected_bodies_return_400(client, body, code):
    res = await _post(client, body)
    assert res.status_code == 400
    assert res.json()["error"]["code"] == code
    assert res.json()["error"]["category"] == "bad_request"


async def test_unknown_field_names_the_field(client):
    res = await _post(client, b'{"name":"a","email":"b","unexpected":1}')
    error = res.json()["error"]
    assert error["message"] == 'Request body contains unknown field "unexpected"'
    assert error["context"]["field"] == "unexpected"


async def test_type_mismatch_names_the_field_and_offset(client):
    res = await _post(client, b'{"name":123,"email":"b"}')
    error = res.json()["error"]
    assert error["context"]["field"] == "name"
    assert error["context"]["offset"] == 11


async def test_non_json_content_type_returns_415(client):
    res = await _post(client, b'{"name":"a","email":"b"}', {"Content-Type": "text/plain"})
    assert res.status_code == 415
    assert res.json()["error"]["message"] == "Content-Type header is not application/json"


async def test_content_type_parameters_are_ignored(client):
    res = await _post(
        client, b'{"name":"a","email":"b"}',
        {"Content-Type": "Application/JSON; charset=utf-8"},
    )
    assert res.status_code == 200


async def test_missing_content_type_is_accepted(client):
    res = await client.post(
        "/users", content=b'{"name":"a","email":"b"}',
    )
    assert res.status_code == 200


async def test_two_megabyte_body_returns_413(client):
    res = await _post(client, b"x" * (2 * 1024 * 1024))
    assert res.status_code == 413
    assert res.json()["error"]["message"] == "Request body must not be larger than 1MB"


async def test_oversize_check_precedes_content_type(client):
    res = await _post(client, b"x" * (2 * 1024 * 1024), {"Content-Type": "text/plain"})
    assert res.status_code == 413


async def test_rejected_body_is_not_stored(client):
    await _post(client, b'{"name":"a","email":"b","extra":true}')
    assert (await client.get("/users")).json() == []


async def test_lone_surrogate_is_stored_as_replacement_character(client):
    res = await _post(client, b'{"name":"\\ud800","email":"b"}')
    assert res.status_code == 200
    stored = (await client.get("/users")).json()
    assert [u["name"] for u in stored] == ["\ufffd"]


async def test_deeply_nested_value_is_a_client_error(client):
    depth = 100_000
    body = b'{"name":' + b"[" * depth + b"]" * depth + b',"email":"b"}'
    res = await _post(client, body)
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "BADLY_FORMED_JSON"


async def test_huge_integer_id_is_a_type_mismatch(client):
    res = await _post(client, b'{"id":' + b"9" * 5000 + b',"name":"a"}')
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "TYPE_MISMATCH"
    assert error["context"]["field"] == "id"


async def test_badly_formed_offset_counts_the_offending_byte(client):
    res = await _post(client, b'{"name": "a",}')
    error = res.json()["error"]
    assert error["context"]["offset"] == 14
    assert error["message"] == "Request body contains badly-formed JSON (at position 14)"
