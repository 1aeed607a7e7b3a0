"""GoodDay items/move への中継クライアント。

ブラウザから直接 GoodDay を叩くと CORS で弾かれるため、
ローカルのこの API が受け取った MoveBatch をそのまま PUT で転送する。
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from backend.fastapi_app.config import Settings
from core.sku_merge.models import MoveBatch

logger = logging.getLogger(__name__)

UPSTREAM_API_KEY_HEADER = "x-goodday-api-key"


class UpstreamError(Exception):
    """GoodDay が 2xx 以外を返したときの例外"""

    def __init__(self, status_code: int, details: str) -> None:
        self.status_code = status_code
        self.details = details
        super().__init__(f"GoodDay API error: {status_code}")


class MoveRelay:
    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    async def send(self, batch: MoveBatch, api_key: str) -> Any:
        """batch を GoodDay に送り、レスポンス本文を返す。

        JSON でない本文は {"message": <text>} に包む。
        """
        logger.info(
            "Forwarding %d move(s) to GoodDay (force=%s)",
            len(batch.moves),
            batch.force,
        )

        async with httpx.AsyncClient(
            timeout=self._settings.upstream_timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            resp = await client.put(
                self._settings.upstream_url,
                json=batch.to_payload(),
                headers={UPSTREAM_API_KEY_HEADER: api_key},
            )

        body = resp.text
        if not resp.is_success:
            logger.warning("GoodDay rejected move: %s %s", resp.status_code, body)
            raise UpstreamError(resp.status_code, body)

        logger.info("GoodDay accepted move: %s", resp.status_code)
        try:
            return resp.json()
        except ValueError:
            return {"message": body}
