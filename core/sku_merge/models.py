from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict


class MoveRecord(BaseModel):
    """
    1 行分のマージ指示。

    - sku           : マージ先（残る側）の SKU
    - skuToReplace  : マージされて消える SKU
    - retainSku     : メタデータを残す側。sku と同じなら "sku" に正規化済み
    """

    sku: str = Field(min_length=1)
    sku_to_replace: str = Field(alias="skuToReplace", min_length=1)
    retain_sku: str = Field(alias="retainSku", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class MoveBatch(BaseModel):
    """GoodDay の items/move にそのまま送るペイロード"""

    force: bool = False
    moves: List[MoveRecord] = Field(default_factory=list)

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "force": False,
                "moves": [
                    {
                        "sku": "197801171173",
                        "skuToReplace": "197801171173-DUPLICATE-1",
                        "retainSku": "sku",
                    }
                ],
            }
        },
    )

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class TransformRequest(BaseModel):
    """
    /v0/transform リクエストモデル

    csv_text（生テキスト）か csv_b64（Base64）のどちらか一方を指定する。
    """

    csv_text: Optional[str] = None
    csv_b64: Optional[str] = None
    force: bool = False

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "csv_text": "sku,skuToReplace,retainSku\nA-1,A-1-DUPLICATE-1,A-1\n",
                "force": False,
            }
        }
    )

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "TransformRequest":
        if (self.csv_text is None) == (self.csv_b64 is None):
            raise ValueError("exactly one of csv_text or csv_b64 must be given")
        return self
