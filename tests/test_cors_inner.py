import pytest

from webguard.all_or_some import AllOrSome
from webguard.cors_errors import CorsError, CorsErrorKind
from webguard.cors_inner import (
    CorsConfig,
    add_vary_header,
    header_value_to_method,
    intersperse_header_values,
)
from webguard.messages import Headers, Request

VARY = "Origin, Access-Control-Request-Method, Access-Control-Request-Headers"


def preflight_config():
    return CorsConfig(
        allowed_origins=AllOrSome.all(),
        send_wildcard=True,
        max_age=3600,
        allowed_methods={"GET", "OPTIONS", "POST"},
        allowed_headers=AllOrSome.some({"authorization", "accept", "content-type"}),
    )


def test_validate_not_allowed_origin():
    config = CorsConfig(allowed_origins=AllOrSome.some({"https://www.example.com"}))
    request = Request(
        method="GET",
        headers={
            "Origin": "https://www.unknown.com",
            "Access-Control-Request-Headers": "DNT",
        },
    )
    with pytest.raises(CorsError) as origin_err:
        config.validate_origin(request)
    assert origin_err.value.kind is CorsErrorKind.ORIGIN_NOT_ALLOWED
    with pytest.raises(CorsError) as method_err:
        config.validate_allowed_method(request)
    assert method_err.value.kind is CorsErrorKind.MISSING_REQUEST_METHOD
    with pytest.raises(CorsError) as headers_err:
        config.validate_allowed_headers(request)
    assert headers_err.value.kind is CorsErrorKind.HEADERS_NOT_ALLOWED


def test_preflight_header_not_allowed():
    config = preflight_config()
    request = Request(
        method="OPTIONS",
        headers={
            "Origin": "https://www.example.com",
            "Access-Control-Request-Headers": "X-Not-Allowed",
        },
    )
    with pytest.raises(CorsError):
        config.validate_allowed_method(request)
    with pytest.raises(CorsError) as info:
        config.validate_allowed_headers(request)
    assert info.value.kind is CorsErrorKind.HEADERS_NOT_ALLOWED


def test_preflight_method_is_case_sensitive():
    config = preflight_config()
    request = Request(
        method="OPTIONS",
        headers={
            "Origin": "https://www.example.com",
            "Access-Control-Request-Method": "put",
        },
    )
    with pytest.raises(CorsError) as info:
        config.validate_allowed_method(request)
    assert info.value.kind is CorsErrorKind.METHOD_NOT_ALLOWED
    assert config.validate_allowed_headers(request) is None


def test_preflight_allowed_request_passes_checks():
    config = preflight_config()
    request = Request(
        method="OPTIONS",
        headers={
            "Origin": "https://www.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "AUTHORIZATION,ACCEPT",
        },
    )
    assert config.validate_origin(request) is True
    assert config.validate_allowed_method(request) is None
    assert config.validate_allowed_headers(request) is None
    assert config.access_control_allow_origin(request) == "*"


def test_bad_request_method_value():
    config = preflight_config()
    request = Request(headers={"Access-Control-Request-Method": "GE T"})
    with pytest.raises(CorsError) as info:
        config.validate_allowed_method(request)
    assert info.value.kind is CorsErrorKind.BAD_REQUEST_METHOD


@pytest.mark.parametrize("value", ["authorization,,accept", "bad header"])
def test_bad_request_headers_value(value):
    config = preflight_config()
    request = Request(headers={"Access-Control-Request-Headers": value})
    with pytest.raises(CorsError) as info:
        config.validate_allowed_headers(request)
    assert info.value.kind is CorsErrorKind.BAD_REQUEST_HEADERS


def test_non_ascii_request_headers_value():
    config = preflight_config()
    request = Request(headers={"Access-Control-Request-Headers": "accépt"})
    with pytest.raises(CorsError) as info:
        config.validate_allowed_headers(request)
    assert info.value.kind is CorsErrorKind.BAD_REQUEST_HEADERS


def test_all_headers_allowed_skips_check():
    config = CorsConfig(allowed_headers=AllOrSome.all())
    request = Request(headers={"Access-Control-Request-Headers": "X-Anything"})
    assert config.validate_allowed_headers(request) is None


def test_origin_fn_receives_request_origin():
    seen = []

    def origin_fn(origin, request):
        seen.append((origin, request.headers.get("origin")))
        return True

    config = CorsConfig(allowed_origins_fns=[origin_fn])
    request = Request(method="GET", headers={"Origin": "https://www.example.com"})
    assert config.validate_origin(request) is True
    assert seen == [("https://www.example.com", "https://www.example.com")]


def test_origin_fns_with_all_origins_use_functions():
    config = CorsConfig(
        allowed_origins=AllOrSome.all(),
        allowed_origins_fns=[lambda origin, request: "dnt" in request.headers],
    )
    plain = Request(headers={"Origin": "http://example.com"})
    with_dnt = Request(headers={"Origin": "http://example.com", "DNT": "1"})
    with pytest.raises(CorsError):
        config.validate_origin(plain)
    assert config.validate_origin(with_dnt) is True


def test_all_origins_without_fns_accepts_missing_origin():
    config = CorsConfig(allowed_origins=AllOrSome.all())
    assert config.validate_origin(Request()) is True


def test_missing_origin_rejected():
    config = CorsConfig()
    with pytest.raises(CorsError) as info:
        config.validate_origin(Request())
    assert info.value.kind is CorsErrorKind.MISSING_ORIGIN


def test_mismatch_not_blocked_returns_false():
    config = CorsConfig(
        allowed_origins=AllOrSome.some({"https://www.example.com"}),
        block_on_origin_mismatch=False,
    )
    request = Request(headers={"Origin": "https://wrong.com"})
    assert config.validate_origin(request) is False


def test_origin_match_is_case_sensitive():
    config = CorsConfig(allowed_origins=AllOrSome.some({"https://www.example.com"}))
    request = Request(headers={"Origin": "https://WWW.example.com"})
    with pytest.raises(CorsError):
        config.validate_origin(request)


def test_allow_origin_echoes_when_not_wildcard():
    config = CorsConfig(allowed_origins=AllOrSome.all())
    request = Request(headers={"Origin": "https://www.example.com"})
    assert config.access_control_allow_origin(request) == "https://www.example.com"
    assert config.access_control_allow_origin(Request()) is None


def test_add_vary_header_sets_value():
    headers = Headers()
    add_vary_header(headers)
    assert headers.get("vary") == VARY


def test_add_vary_header_appends_to_existing():
    headers = Headers({"Vary": "Accept"})
    add_vary_header(headers)
    assert headers.get("vary") == "Accept, " + VARY


def test_intersperse_single_value():
    assert intersperse_header_values({"GET"}) == "GET"


def test_intersperse_contains_every_value():
    joined = intersperse_header_values({"GET", "POST", "OPTIONS"})
    assert sorted(joined.split(", ")) == ["GET", "OPTIONS", "POST"]


def test_intersperse_empty_raises():
    with pytest.raises(ValueError):
        intersperse_header_values(set())


@pytest.mark.parametrize("value", ["POST", "put", "PATCH"])
def test_header_value_to_method_accepts_tokens(value):
    assert header_value_to_method(value) == value


@pytest.mark.parametrize("value", ["", "GE T", "GET/1", "GÉT"])
def test_header_value_to_method_rejects_invalid(value):
    assert header_value_to_method(value) is None