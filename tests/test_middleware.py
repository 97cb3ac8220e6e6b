"""Tests for ASGI and WSGI middleware."""

import json
from io import BytesIO

import pytest
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from request_validator import Pipeline, default_stages
from request_validator.middleware.asgi import RequestValidatorASGIMiddleware, build_request
from request_validator.middleware.wsgi import RequestValidatorWSGIMiddleware
from request_validator.tokens import origin_token

from conftest import BROWSER_UA, GOOGLEBOT_UA, PEPPER, FakeCaptcha, FakeResolver


def browser_headers(address):
    return {
        "user-agent": BROWSER_UA,
        "accept": "text/html,*/*;q=0.8",
        "cookie": f"request_key={origin_token(address, PEPPER)}",
    }


@pytest.fixture
def pipeline(config, store):
    return Pipeline(default_stages(
        config,
        store,
        resolver=FakeResolver(),
        captcha=FakeCaptcha(success=True),
    ))


# Test ASGI app
async def asgi_endpoint(request):
    admission = getattr(request.state, "admission", None)
    return JSONResponse({
        "admitted": admission is not None,
        "allowed_bot": admission.allowed_bot if admission else False,
        "challenge_pass": admission.challenge_pass if admission else False,
        "has_token": bool(admission and admission.request_token),
    })


def create_asgi_app(pipeline):
    """Create test ASGI app with middleware."""
    app = Starlette(routes=[
        Route("/test", asgi_endpoint, methods=["GET", "HEAD", "POST"]),
        Route("/api/captcha-verify", asgi_endpoint, methods=["POST"]),
    ])
    app.add_middleware(RequestValidatorASGIMiddleware, pipeline=pipeline)
    return app


class TestASGIMiddleware:
    """Tests for RequestValidatorASGIMiddleware."""

    def test_first_visit_redirect(self, pipeline):
        """No cookie: 307 with request_key set."""
        client = TestClient(create_asgi_app(pipeline))

        response = client.get(
            "/test",
            headers={"user-agent": BROWSER_UA},
            follow_redirects=False,
        )

        assert response.status_code == 307
        assert response.headers["location"] == "/test"
        assert response.headers["set-cookie"].startswith("request_key=")

    def test_admitted_request(self, pipeline):
        """Browser with cookie reaches the app with the admission attached."""
        client = TestClient(create_asgi_app(pipeline))

        response = client.get("/test", headers=browser_headers("testclient"))

        assert response.status_code == 200
        data = response.json()
        assert data["admitted"] is True
        assert data["has_token"] is True
        assert data["allowed_bot"] is False

    def test_redirect_then_admit(self, pipeline):
        """Following the redirect with the issued cookie gets the page."""
        client = TestClient(create_asgi_app(pipeline))

        response = client.get("/test", headers={"user-agent": BROWSER_UA, "accept": "*/*"})

        assert response.status_code == 200
        assert response.json()["admitted"] is True

    def test_bad_bot(self, pipeline):
        """Deny-listed client gets a plain text 403."""
        client = TestClient(create_asgi_app(pipeline))
        headers = browser_headers("testclient")
        headers["user-agent"] = "python-requests/2.31.0"

        response = client.get("/test", headers=headers)

        assert response.status_code == 403
        assert response.text == "Bad bot rejected"

    def test_method_not_allowed(self, pipeline):
        """405 carries an Allow header and the plain reason."""
        client = TestClient(create_asgi_app(pipeline))

        response = client.post("/test", headers=browser_headers("testclient"))

        assert response.status_code == 405
        assert response.headers["allow"] == "GET, HEAD"
        assert response.text == "Request method is not allowed."

    def test_captcha_submission(self, pipeline):
        """Form submission to the verification endpoint sets challenge_pass."""
        client = TestClient(create_asgi_app(pipeline))

        response = client.post(
            "/api/captcha-verify",
            headers=browser_headers("testclient"),
            data={"h-captcha-response": "P1_token"},
        )

        assert response.status_code == 200
        assert response.json()["challenge_pass"] is True

    def test_captcha_submission_missing_token(self, pipeline):
        """Submission without the token gets 401."""
        client = TestClient(create_asgi_app(pipeline))

        response = client.post(
            "/api/captcha-verify",
            headers=browser_headers("testclient"),
            data={"other": "x"},
        )

        assert response.status_code == 401
        assert response.text == "Missing CAPTCHA response"

    def test_fake_googlebot(self, pipeline):
        """Googlebot UA that fails DNS confirmation gets 403."""
        client = TestClient(create_asgi_app(pipeline))

        response = client.get("/test", headers={"user-agent": GOOGLEBOT_UA})

        assert response.status_code == 403
        assert response.text == "Fake bot rejected"


class TestBuildRequest:
    """Tests for translating Starlette requests."""

    @pytest.mark.asyncio
    async def test_http2_and_tls(self):
        """HTTP version and the ASGI tls extension are mapped."""
        from starlette.requests import Request as StarletteRequest

        scope = {
            "type": "http",
            "http_version": "2",
            "method": "GET",
            "scheme": "https",
            "path": "/page",
            "raw_path": b"/page",
            "query_string": b"a=1",
            "headers": [(b"user-agent", b"Mozilla/5.0 test agent"), (b"cookie", b"request_key=abc")],
            "client": ("203.0.113.5", 50000),
            "server": ("example.com", 443),
            "extensions": {"tls": {"tls_version": 0x0304}},
        }

        request = await build_request(StarletteRequest(scope))

        assert request.protocol == "HTTP/2.0"
        assert request.tls_version == "TLSv1.3"
        assert request.scheme == "https"
        assert request.query == "a=1"
        assert request.client_address == "203.0.113.5"
        assert request.cookies == {"request_key": "abc"}


# Test WSGI app
def wsgi_app_handler(environ, start_response):
    """Simple WSGI app for testing."""
    admission = environ.get("request_validator.admission")

    body = json.dumps({
        "admitted": admission is not None,
        "challenge_pass": admission.challenge_pass if admission else False,
    }).encode()

    start_response("200 OK", [
        ("Content-Type", "application/json"),
        ("Content-Length", str(len(body))),
    ])
    return [body]


def make_environ(address="198.51.100.7", **overrides):
    environ = {
        "REQUEST_METHOD": "GET",
        "PATH_INFO": "/test",
        "QUERY_STRING": "",
        "SERVER_NAME": "localhost",
        "SERVER_PROTOCOL": "HTTP/1.1",
        "REMOTE_ADDR": address,
        "wsgi.url_scheme": "http",
        "HTTP_USER_AGENT": BROWSER_UA,
        "HTTP_ACCEPT": "text/html,*/*;q=0.8",
        "HTTP_COOKIE": f"request_key={origin_token(address, PEPPER)}",
    }
    environ.update(overrides)
    return environ


def call_wsgi(app, environ):
    responses = []

    def start_response(status, headers, exc_info=None):
        responses.append((status, dict(headers)))

    body = b"".join(app(environ, start_response))
    return responses[0][0], responses[0][1], body


class TestWSGIMiddleware:
    """Tests for RequestValidatorWSGIMiddleware."""

    def test_admitted_request(self, pipeline):
        """Browser with cookie reaches the app."""
        app = RequestValidatorWSGIMiddleware(wsgi_app_handler, pipeline)

        status, _, body = call_wsgi(app, make_environ())

        assert status == "200 OK"
        assert json.loads(body)["admitted"] is True

    def test_first_visit_redirect(self, pipeline):
        """No cookie: 307 with request_key set."""
        app = RequestValidatorWSGIMiddleware(wsgi_app_handler, pipeline)
        environ = make_environ()
        del environ["HTTP_COOKIE"]

        status, headers, _ = call_wsgi(app, environ)

        assert status == "307 Temporary Redirect"
        assert headers["Location"] == "/test"
        assert headers["Set-Cookie"].startswith("request_key=")

    def test_old_tls_rejected(self, pipeline):
        """https over HTTP/2.0 with TLSv1.2 gets 505."""
        app = RequestValidatorWSGIMiddleware(wsgi_app_handler, pipeline)
        environ = make_environ(
            **{"wsgi.url_scheme": "https", "SERVER_PROTOCOL": "HTTP/2.0", "SSL_PROTOCOL": "TLSv1.2"}
        )

        status, _, body = call_wsgi(app, environ)

        assert status == "505 HTTP Version Not Supported"
        assert body == b"Bad TLS version"

    def test_query_string_redirect(self, pipeline):
        """Query strings are stripped with a 301."""
        app = RequestValidatorWSGIMiddleware(wsgi_app_handler, pipeline)

        status, headers, _ = call_wsgi(app, make_environ(QUERY_STRING="utm_source=x"))

        assert status == "301 Moved Permanently"
        assert headers["Location"] == "/test"

    def test_captcha_submission(self, pipeline):
        """Form submission sets challenge_pass and the body stays readable."""
        seen = {}

        def app_reading_body(environ, start_response):
            length = int(environ["CONTENT_LENGTH"])
            seen["body"] = environ["wsgi.input"].read(length)
            return wsgi_app_handler(environ, start_response)

        app = RequestValidatorWSGIMiddleware(app_reading_body, pipeline)
        form = b"h-captcha-response=P1_token"
        environ = make_environ(
            REQUEST_METHOD="POST",
            PATH_INFO="/api/captcha-verify",
            CONTENT_TYPE="application/x-www-form-urlencoded",
            CONTENT_LENGTH=str(len(form)),
            **{"wsgi.input": BytesIO(form)},
        )

        status, _, body = call_wsgi(app, environ)

        assert status == "200 OK"
        assert json.loads(body)["challenge_pass"] is True
        assert seen["body"] == form

    def test_method_not_allowed(self, pipeline):
        """405 carries an Allow header."""
        app = RequestValidatorWSGIMiddleware(wsgi_app_handler, pipeline)

        status, headers, body = call_wsgi(app, make_environ(REQUEST_METHOD="DELETE"))

        assert status == "405 Method Not Allowed"
        assert headers["Allow"] == "GET, HEAD"
        assert body == b"Request method is not allowed."
