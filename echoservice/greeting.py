# echoservice/greeting.py
"""
The greeting endpoint.

- GET /hello/{name} -> "Hello {name}\n" (text/plain)
- GET /hello/       -> "Hello world\n"

The name is read from the path only. Query parameters are logged for
observability and never change the body.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

DEFAULT_NAME = "world"

router = APIRouter(tags=["greeting"])
log = logging.getLogger("echoservice")


def greeting_text(name: str) -> str:
    return f"Hello {name or DEFAULT_NAME}\n"


# Two routes: a path param never matches an empty segment.
@router.get("/hello/", response_class=PlainTextResponse)
@router.get("/hello/{name}", response_class=PlainTextResponse)
def hello(request: Request) -> PlainTextResponse:
    rid = getattr(request.state, "request_id", "-")
    path_vars = dict(request.path_params)
    log.info("Responding to /hello request", extra={"request_id": rid})
    log.info(f'user_agent="{request.headers.get("user-agent", "")}"', extra={"request_id": rid})
    log.info(f"request vars={path_vars}", extra={"request_id": rid})
    log.info(f'query string="{request.url.query}"', extra={"request_id": rid})

    return PlainTextResponse(greeting_text(path_vars.get("name", "")), status_code=200)
