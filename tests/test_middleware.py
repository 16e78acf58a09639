from starlette.datastructures import QueryParams

from trok.core.middleware import collapse_query_params


def test_collapse_keeps_last_value():
    query = collapse_query_params(QueryParams("step=2&email=a%40b.co&step=3"))
    assert QueryParams(query)["step"] == "3"
    assert QueryParams(query).getlist("step") == ["3"]
    assert QueryParams(query)["email"] == "a@b.co"


def test_collapse_leaves_single_values():
    assert QueryParams(collapse_query_params(QueryParams("a=1&b=2"))) == QueryParams("a=1&b=2")


def test_response_carries_request_headers(client):
    response = client.get("/live", headers={"X-Request-ID": "req-123"})

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "req-123"
    assert float(response.headers["X-Process-Time"]) >= 0


def test_request_id_is_generated(client):
    response = client.get("/live")
    assert response.headers["X-Request-ID"]
