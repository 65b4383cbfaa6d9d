import pytest

from webguard.messages import Headers, Request, Response


def test_headers_lookup_is_case_insensitive():
    headers = Headers({"Content-Type": "text/plain"})
    assert headers.get("content-type") == "text/plain"
    assert headers.get("CONTENT-TYPE") == "text/plain"
    assert "Content-type" in headers


def test_headers_names_are_lower_case_and_ordered():
    headers = Headers([("Origin", "https://example.com"), ("Accept", "*/*")])
    assert headers.names() == ["origin", "accept"]
    assert list(headers) == ["origin", "accept"]


def test_insert_replaces_existing_value():
    headers = Headers({"Vary": "Accept"})
    headers.insert("VARY", "Origin")
    assert headers.get("vary") == "Origin"
    assert len(headers) == 1


def test_remove_returns_value_and_deletes():
    headers = Headers({"Origin": "https://example.com"})
    assert headers.remove("origin") == "https://example.com"
    assert "origin" not in headers
    assert len(headers) == 0
    assert headers.remove("origin") is None


def test_missing_header_is_none():
    assert Headers().get("origin") is None


@pytest.mark.parametrize("name", ["", "bad name", "x:y", "a,b"])
def test_invalid_header_name_rejected(name):
    with pytest.raises(ValueError):
        Headers().insert(name, "value")


def test_control_characters_in_value_rejected():
    with pytest.raises(ValueError):
        Headers().insert("x-test", "line\r\nbreak")


def test_request_accepts_mapping_for_headers():
    request = Request(method="OPTIONS", headers={"Origin": "https://example.com"})
    assert request.headers.get("origin") == "https://example.com"
    assert request.method == "OPTIONS"


def test_request_cookie_lookup():
    request = Request(headers={"Cookie": "sid=token; theme=dark"})
    assert request.cookie("sid") == "token"
    assert request.cookie("theme") == "dark"
    assert request.cookie("missing") is None


def test_request_without_cookie_header():
    assert Request().cookie("sid") is None


def test_response_accepts_mapping_for_headers():
    response = Response(headers={"Vary": "Accept"}, body="hello")
    assert response.headers.get("vary") == "Accept"
    assert response.body == "hello"