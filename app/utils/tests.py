"""Helpers for route tests."""

from typing import Any, Callable, Dict, Iterable, Optional, Union

from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient

from api.dependencies.rate_limits import setup_rate_limiter


def create_test_app(
    routers: Union[APIRouter, Iterable[APIRouter]],
    overrides: Optional[Dict[Callable[..., Any], Callable[..., Any]]] = None,
    middlewares=None,
) -> FastAPI:
    """FastAPI app with the given routers and the shared rate limiter.

    The production lifespan is not attached, so no provider runs unless a
    route asks for it.

    Args:
        routers: One router or several
        overrides: Provider -> replacement, e.g.
            ``{get_linking_handler: lambda: fake_handler}``
        middlewares: (middleware_class, options) pairs
    """
    app = FastAPI()
    setup_rate_limiter(app)
    for middleware_class, options in middlewares or []:
        app.add_middleware(middleware_class, **options)
    for router in [routers] if isinstance(routers, APIRouter) else routers:
        app.include_router(router)
    app.dependency_overrides.update(overrides or {})
    return app


def rate_limiting_helper(
    app: FastAPI,
    endpoint: str,
    request_limit: int,
    method: str = "get",
    expected_status: int = 200,
    headers: Optional[dict] = None,
):
    """Assert ``request_limit`` calls pass and the next one gets a 429."""
    send = getattr(TestClient(app), method.lower())

    for attempt in range(1, request_limit + 1):
        response = send(endpoint, headers=headers or {})
        assert (
            response.status_code == expected_status
        ), f"Request {attempt} failed with status {response.status_code}"

    response = send(endpoint, headers=headers or {})
    assert response.status_code == 429, "Expected rate limiting to trigger"
    assert response.json() == {"message": "Rate limit exceeded"}
