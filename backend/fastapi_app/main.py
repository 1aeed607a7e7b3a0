from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
from fastapi import Depends, FastAPI, File, Form, Header, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

# ============================================================
# プロジェクトルートを sys.path に追加
# （Lambda / uvicorn どちらでも core パッケージを解決できるように）
# ============================================================
ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from backend.fastapi_app.config import API_VERSION, get_settings  # noqa: E402
from backend.fastapi_app.relay import MoveRelay, UpstreamError  # noqa: E402
from core.sku_merge.models import MoveBatch, TransformRequest  # noqa: E402
from core.sku_merge.service import (  # noqa: E402
    SAMPLE_CSV,
    InvalidBase64Error,
    MoveCsvError,
    decode_csv_b64,
    transform_csv,
)

settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# ============================================================
# API Gateway 側でプレフィックスを付けてルーティングする場合は
# API_ROOT_PATH にそのプレフィックスを指定する（ローカルでは空）
# ============================================================
app = FastAPI(
    title="SKU Merge CSV Relay API",
    version=API_VERSION,
    description="CSV of SKU merge instructions -> GoodDay items/move payload",
    root_path=settings.root_path,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_relay() -> MoveRelay:
    return MoveRelay(get_settings())


def _error_response(status_code: int, code: str, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                **extra,
            },
            "meta": {
                "version": API_VERSION,
            },
        },
    )


@app.exception_handler(MoveCsvError)
async def move_csv_error_handler(_: Request, exc: MoveCsvError) -> JSONResponse:
    return _error_response(400, exc.code, str(exc), **exc.details())


@app.exception_handler(InvalidBase64Error)
async def invalid_base64_handler(_: Request, exc: InvalidBase64Error) -> JSONResponse:
    return _error_response(400, "INVALID_BASE64", str(exc))


@app.exception_handler(UpstreamError)
async def upstream_error_handler(_: Request, exc: UpstreamError) -> JSONResponse:
    return _error_response(exc.status_code, "UPSTREAM_ERROR", str(exc), details=exc.details)


@app.exception_handler(httpx.HTTPError)
async def upstream_unavailable_handler(_: Request, exc: httpx.HTTPError) -> JSONResponse:
    logger.error("Error calling GoodDay API: %s", exc)
    return _error_response(502, "UPSTREAM_UNAVAILABLE", "GoodDay API is unreachable", details=str(exc))


@app.get("/health")
async def health():
    return {"status": "OK", "message": "Server is running"}


@app.get("/v0/sample")
async def sample_csv():
    return PlainTextResponse(
        SAMPLE_CSV,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="sample.csv"'},
    )


@app.post("/v0/transform")
async def transform_endpoint(payload: TransformRequest):
    if payload.csv_b64 is not None:
        csv_text = decode_csv_b64(payload.csv_b64)
    else:
        csv_text = payload.csv_text
    batch = transform_csv(csv_text, force=payload.force)
    return batch.to_payload()


@app.post("/v0/transform/upload")
async def transform_upload_endpoint(
    file: UploadFile = File(...),
    force: bool = Form(False),
):
    if not (file.filename or "").lower().endswith(".csv"):
        return _error_response(422, "UNSUPPORTED_FILE", "Please upload a valid CSV file.")

    raw = await file.read()
    try:
        csv_text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return _error_response(422, "INVALID_ENCODING", "CSV file must be UTF-8 text")

    batch = transform_csv(csv_text, force=force)
    return batch.to_payload()


# NOTE:
# ブラウザ側は x-api-key で GoodDay の API キーを渡してくる。
# ここでは保持も検証もせず、そのまま上流へ転送するだけ。
@app.put("/move")
async def move_endpoint(
    payload: MoveBatch,
    x_api_key: Optional[str] = Header(default=None, alias="x-api-key"),
    relay: MoveRelay = Depends(get_relay),
):
    if not x_api_key or not x_api_key.strip():
        return _error_response(
            400,
            "API_KEY_REQUIRED",
            "API key is required. Please enter your API key.",
        )

    return await relay.send(payload, x_api_key.strip())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
