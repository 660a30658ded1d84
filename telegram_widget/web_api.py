"""HTTP endpoints for the Telegram login widget.

The widget either redirects the browser to a callback URL with the user data
in the query string, or hands the data to a JavaScript callback that can POST
it as JSON. Both land here and are answered with the verified user.
Uses aiohttp.
"""

import time

from aiohttp import web

from .config import Config
from .form import convert_and_verify_form
from .json_source import convert_and_verify_json
from .login import InvalidHashError, MalformedDataError


WIDGET_VERSION = 4


def _log_unknown_field(name: str) -> None:
    print(f"[Auth] unexpected field in Telegram user: {name}")


def _multidict_to_form(data) -> dict[str, list[str]]:
    """Flatten an aiohttp MultiDict into {key: [values]}, keeping repeated keys."""
    return {key: [str(v) for v in data.getall(key)] for key in data.keys()}


def _verify(request: web.Request, convert, data) -> web.Response:
    """Run an adapter and turn its outcome into a JSON response."""
    verifier = request.app["verifier"]
    try:
        user = convert(data, verifier, _log_unknown_field)
    except InvalidHashError:
        return web.json_response({"error": "invalid hash"}, status=401)
    except MalformedDataError as e:
        return web.json_response({"error": str(e)}, status=400)
    return web.json_response({"user": user.to_dict()})


async def handle_login_redirect(request: web.Request) -> web.Response:
    """GET /auth/telegram — the widget's redirect callback."""
    return _verify(request, convert_and_verify_form, _multidict_to_form(request.query))


async def handle_login_post(request: web.Request) -> web.Response:
    """POST /auth/telegram — user data as a JSON object or a urlencoded form."""
    if request.content_type == "application/x-www-form-urlencoded":
        form = await request.post()
        return _verify(request, convert_and_verify_form, _multidict_to_form(form))
    if request.content_type == "application/json":
        body = await request.read()
        return _verify(request, convert_and_verify_json, body)
    return web.json_response(
        {"error": f"unsupported content type: {request.content_type}"}, status=415,
    )


async def handle_health(request: web.Request) -> web.Response:
    """GET /api/health — liveness plus the widget protocol version served."""
    return web.json_response({
        "status": "ok",
        "widget_version": WIDGET_VERSION,
        "time": int(time.time()),
    })


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.Response:
    """Let the page embedding the widget POST its callback data cross-origin."""
    if request.method == "OPTIONS":
        response = web.Response()
        response.headers["Access-Control-Max-Age"] = "600"
    else:
        response = await handler(request)

    allowed_origin = request.app.get("cors_origin", "*")
    response.headers["Access-Control-Allow-Origin"] = allowed_origin
    if allowed_origin != "*":
        response.headers["Vary"] = "Origin"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return response


@web.middleware
async def logging_middleware(request: web.Request, handler) -> web.Response:
    """Log each request by path only.

    The query string is left out: on the redirect callback it holds the
    user's data and hash.
    """
    start = time.time()
    tag = "[Login]" if request.path.startswith("/auth/") else "[API]"
    try:
        response = await handler(request)
        elapsed = (time.time() - start) * 1000
        print(f"{tag} {request.method} {request.path} → {response.status} ({elapsed:.0f}ms)")
        return response
    except Exception as e:
        elapsed = (time.time() - start) * 1000
        print(f"{tag} {request.method} {request.path} → ERROR: {type(e).__name__} ({elapsed:.0f}ms)")
        raise


def create_web_app(config: Config) -> web.Application:
    """Create and configure the aiohttp web application."""
    app = web.Application(middlewares=[logging_middleware, cors_middleware])
    app["config"] = config
    app["verifier"] = config.verifier()
    app["cors_origin"] = config.cors_origin

    app.router.add_get("/api/health", handle_health)
    app.router.add_get("/auth/telegram", handle_login_redirect)
    app.router.add_post("/auth/telegram", handle_login_post)

    return app
