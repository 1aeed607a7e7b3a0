import json

from backend.fastapi_app.lambda_handler import _request_context, _stage_base_path, handler


def _http_api_event(method, path, stage="$default", body=None, headers=None):
    """API Gateway HTTP API (payload v2.0) 形式の最小イベント"""
    return {
        "version": "2.0",
        "routeKey": "$default",
        "rawPath": path,
        "rawQueryString": "",
        "headers": headers or {"content-type": "application/json"},
        "requestContext": {
            "accountId": "123456789012",
            "apiId": "api-id",
            "domainName": "example.execute-api.ap-northeast-1.amazonaws.com",
            "http": {
                "method": method,
                "path": path,
                "protocol": "HTTP/1.1",
                "sourceIp": "192.0.2.1",
                "userAgent": "pytest",
            },
            "requestId": "id",
            "routeKey": "$default",
            "stage": stage,
        },
        "body": body,
        "isBase64Encoded": False,
    }


def test_stage_base_path():
    assert _stage_base_path("$default") is None
    assert _stage_base_path(None) is None
    assert _stage_base_path("dev") == "/dev"


def test_handler_serves_health(capsys):
    resp = handler(_http_api_event("GET", "/health"), None)

    assert resp["statusCode"] == 200
    assert json.loads(resp["body"]) == {"status": "OK", "message": "Server is running"}

    diag = json.loads(capsys.readouterr().out.strip().splitlines()[0])
    assert diag["diag"] == "incoming_request"
    assert diag["method"] == "GET"
    assert diag["has_api_key"] is False


def test_handler_strips_stage_prefix():
    """
    /dev ステージ経由の /dev/v0/transform が
    FastAPI 側では /v0/transform として処理されること。
    """
    body = json.dumps({"csv_text": "sku,skuToReplace,retainSku\nA,A-DUP,A"})
    event = _http_api_event("POST", "/dev/v0/transform", stage="dev", body=body)

    resp = handler(event, None)

    assert resp["statusCode"] == 200
    assert json.loads(resp["body"])["moves"] == [
        {"sku": "A", "skuToReplace": "A-DUP", "retainSku": "sku"},
    ]


def test_request_context_lookup():
    event = _http_api_event("GET", "/health", stage="dev")

    assert _request_context(event, "stage") == "dev"
    assert _request_context(event, "http", "method") == "GET"
    assert _request_context(event, "http", "missing") is None
    assert _request_context({"requestContext": {"stage": "x"}}, "stage", "http") is None
    assert _request_context({}, "http", "path") is None
