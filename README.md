# webguard

Framework-neutral middleware building blocks for HTTP services. A "service" here is any
callable that takes a `webguard.messages.Request` and returns a `webguard.messages.Response`;
each middleware wraps such a callable and is itself one.

- **CORS** (`webguard.cors.Cors`): checks the `Origin`, `Access-Control-Request-Method` and
  `Access-Control-Request-Headers` request headers, answers preflight `OPTIONS` requests and adds
  the matching `Access-Control-*` and `Vary` headers to responses.
- **Rate limiting** (`webguard.limiter.Limiter`, `webguard.rate_limit_middleware.RateLimiter`):
  a fixed-window counter stored in Redis, keyed by whatever you derive from a request.
- **Identity** (`webguard.identity.Identity`): a verified user id kept in a session, with a
  choice of what logging out does.

## Installation

```
pip install webguard
```

## Requests and responses

`Request(method="GET", headers=..., path="/", extensions={})` and
`Response(status=200, headers=..., body=b"")` are dataclasses. Their `headers` is a
`Headers` map (built from a dict or a list of pairs) that is case-insensitive, keeps one value
per name and rejects invalid names and values with `ValueError`. `Request.cookie(name)` reads a
value from the `Cookie` header.

## CORS

```python
from webguard.cors import Cors
from webguard.messages import Request, Response

def service(request: Request) -> Response:
    return Response(body="Hello, cross-origin world!")

middleware = (
    Cors()
    .allowed_origin("http://project.local:8080")
    .allowed_origin_fn(lambda origin, request: origin.startswith("http://localhost"))
    .allowed_methods(["GET", "POST"])
    .allowed_headers(["Authorization", "Accept"])
    .allowed_header("Content-Type")
    .expose_headers(["Content-Disposition"])
    .block_on_origin_mismatch(False)
    .max_age(3600)
    .new_transform(service)
)

response = middleware(Request(headers={"Origin": "http://localhost:3000"}))
```

- `Cors()` starts from restrictive defaults: no origins, methods, request headers or exposed
  headers, no credentials, no max age. `Cors.permissive()` allows all origins, the standard
  methods, all request headers and exposed headers, supports credentials and sets a max age of
  one hour; it is meant for development only.
- Other settings: `allow_any_origin`, `allow_any_method`, `allow_any_header`,
  `expose_any_header`, `send_wildcard`, `supports_credentials`, `disable_vary_header`,
  `disable_preflight`.
- Configuration mistakes (a `*` origin, an invalid origin, method or header name, a negative
  max age, or credentials combined with a wildcard for all origins) are raised as
  `CorsConfigError` from `new_transform`. After the first mistake further settings are ignored.
- A request whose origin is refused gets `400 Bad Request` with the `CorsError` message as body.
  With `block_on_origin_mismatch(False)`, ordinary requests from such origins reach the service
  but get no `Access-Control-Allow-Origin`; preflight requests from them are still answered 400.
- Header lists such as `Access-Control-Allow-Methods` are sent sorted and joined with `", "`.

## Rate limiting

```python
from datetime import timedelta
from webguard.limiter import Limiter
from webguard.rate_limit_middleware import RateLimiter

limiter = (
    Limiter.builder("redis://127.0.0.1")
    .key_by(lambda request: request.cookie("session-id"))
    .limit(5000)
    .period(timedelta(hours=1))
    .build()
)

middleware = RateLimiter(limiter).new_transform(service)
```

- Defaults: 5000 requests per 3600 seconds, keyed by the `sid` cookie (the key is
  `sid=<value>`). `Builder.cookie_name` changes the cookie; it is deprecated in favour of
  `key_by` and raises `RuntimeError` once `key_by` has been set.
- `build()` raises `ClientError` when the Redis URL cannot be parsed; it does not connect.
- `Limiter.count(key)` consumes one unit and returns a `Status` with `limit`, `remaining` and
  `reset_epoch_utc`. Once the count passes the limit it raises `LimitExceeded`, whose `status`
  has `remaining == 0`; Redis failures raise `ClientError`.
- The middleware answers over-limit requests with `429 Too Many Requests` and limiter failures
  with `500`. Requests for which no key can be derived go through uncounted. Without a limiter
  of its own, `RateLimiter()` looks one up in `request.extensions[Limiter]` and raises
  `RuntimeError` if there is none.

## Identity

The identity helpers work on any session object with `get`, `insert`, `remove`, `purge` and
`renew` methods (the `SessionLike` protocol). They find it through an `IdentityInner` stored in
a request's `extensions` under the `IdentityInner` key.

```python
from webguard.identity import Identity, IdentityInner, get_identity
from webguard.identity_config import LogoutBehaviour

extensions = {
    IdentityInner: IdentityInner(
        session,
        logout_behaviour=LogoutBehaviour.DELETE_IDENTITY_KEYS,
        is_visit_deadline_enabled=True,
    )
}

user = Identity.login(extensions, "User1")  # stores the id, timestamps, renews the session
user.id()                                   # "User1"
user.last_visited_at()                      # a UTC datetime, or None
user.logout()
```

- `Identity.extract(extensions)` (and `get_identity(request)` for anything with
  `extensions`) raises `MissingIdentityError` when no one is logged in, and `RuntimeError` when
  no `IdentityInner` is present.
- `LogoutBehaviour.PURGE_SESSION` (the default) purges the whole session;
  `DELETE_IDENTITY_KEYS` removes only the identity entries.
- Errors carry a `status_code()`: 401 for `LoginError`, `MissingIdentityError`,
  `SessionExpiryError` and `SessionGetError`; 500 for `LostIdentityError`.
- `IdentityMiddlewareBuilder` collects an `IdentityConfig` (`on_logout`, `login_deadline`,
  `visit_deadline`) through `logout_behaviour`, `login_deadline` and `visit_deadline`.

## What is not included

- There is no HTTP server and no adapter for a particular web framework; you call the
  middleware with `Request` objects yourself.
- There is no session store; supply your own session object.
- There is no identity middleware: nothing turns an `IdentityConfig` into an `IdentityInner`
  for each request, and login and visit deadlines are recorded as timestamps but not enforced.

## Running the tests

```
pip install -e ".[test]"
pytest
```