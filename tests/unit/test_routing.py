import pytest
from gemini_gateway.exceptions import MethodNotAllowedError, NotFoundError
from gemini_gateway.routing import ROUTES, Route, resolve_route


@pytest.mark.parametrize(
    ("path", "method", "endpoint"),
    [
        ("/v1/chat/completions", "POST", "chat_completions"),
        ("/chat/completions", "post", "chat_completions"),
        ("/v1/models", "GET", "list_models"),
        ("/openai/v1/embeddings", "POST", "embeddings"),
    ],
)
def test_routes_match_by_suffix(path: str, method: str, endpoint: str):
    assert resolve_route(path, method).endpoint == endpoint


@pytest.mark.parametrize(
    ("path", "method"),
    [
        ("/v1/chat/completions", "GET"),
        ("/v1/models", "POST"),
        ("/v1/embeddings", "PUT"),
    ],
)
def test_wrong_verb_for_known_path(path: str, method: str):
    with pytest.raises(MethodNotAllowedError) as exc_info:
        resolve_route(path, method)
    assert exc_info.value.status_code == 400


def test_unknown_path_is_not_found():
    with pytest.raises(NotFoundError) as exc_info:
        resolve_route("/v1/completions", "POST")
    assert exc_info.value.status_code == 404


def test_first_matching_route_wins():
    routes = (Route("/models", "GET", "first"), Route("/models", "POST", "second"))
    with pytest.raises(MethodNotAllowedError):
        resolve_route("/models", "POST", routes)


def test_default_table_order():
    assert [route.suffix for route in ROUTES] == [
        "/chat/completions",
        "/models",
        "/embeddings",
    ]
