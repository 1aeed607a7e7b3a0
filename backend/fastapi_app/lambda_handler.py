from __future__ import annotations

import json

from mangum import Mangum

from backend.fastapi_app.main import app


def _request_context(event, *keys):
    # requestContext 配下を辿る。REST API / 直接 invoke では http が無いので None
    node = event.get("requestContext") or {}
    for key in keys:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _stage_base_path(stage):
    # $default ステージは URL にプレフィックスが付かない
    if not stage or stage == "$default":
        return None
    return f"/{stage}"


def handler(event, context):
    stage = _request_context(event, "stage")
    method = _request_context(event, "http", "method")
    http_path = _request_context(event, "http", "path")

    # API キーは出さない（ヘッダはキー名だけ記録する）
    headers = event.get("headers") or {}
    print(
        json.dumps(
            {
                "diag": "incoming_request",
                "stage": stage,
                "method": method,
                "rawPath": event.get("rawPath"),
                "requestContext.http.path": http_path,
                "has_api_key": "x-api-key" in {k.lower() for k in headers},
            },
            ensure_ascii=False,
        )
    )

    asgi = Mangum(app, api_gateway_base_path=_stage_base_path(stage))
    return asgi(event, context)
