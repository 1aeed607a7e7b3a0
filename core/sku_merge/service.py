from __future__ import annotations

import base64
import binascii
from typing import Any, Dict, List, Sequence

from .models import MoveBatch, MoveRecord

REQUIRED_HEADERS: tuple[str, ...] = ("sku", "skuToReplace", "retainSku")

# retainSku が sku と同じ値のときに送るリテラル
RETAIN_SELF = "sku"

SAMPLE_CSV = (
    "sku,skuToReplace,retainSku\n"
    "197801171173,197801171173-DUPLICATE-1,197801171173\n"
    "FL-PE-BASE-105,FL-PE-BASE-105-DUPLICATE-1,FL-PE-BASE-75\n"
    "FL-PE-COLM-105,FL-PE-COLM-105-DUPLICATE-1,FL-PE-COLM-75\n"
    "FL-PE-MERA-105,FL-PE-MERA-105-DUPLICATE-1,FL-PE-MERA-75\n"
    "FL-PE-REMY-105,FL-PE-REMY-105-DUPLICATE-1,FL-PE-REMY-75\n"
    "FL-PE-UMBR-105,FL-PE-UMBR-105-DUPLICATE-1,FL-PE-UMBR-75\n"
)


class InvalidBase64Error(ValueError):
    """csv_b64 で渡された CSV が Base64 / UTF-8 として読めないとき"""


class MoveCsvError(ValueError):
    """CSV → MoveBatch 変換の失敗。メッセージはそのままユーザーに見せる。"""

    code = "INVALID_CSV"

    def details(self) -> Dict[str, Any]:
        return {}


class InsufficientRowsError(MoveCsvError):
    code = "INSUFFICIENT_ROWS"

    def __init__(self) -> None:
        super().__init__("CSV must have at least a header row and one data row")


class MissingHeadersError(MoveCsvError):
    code = "MISSING_HEADERS"

    def __init__(self, names: Sequence[str]) -> None:
        self.names = list(names)
        super().__init__(f"Missing required headers: {', '.join(self.names)}")

    def details(self) -> Dict[str, Any]:
        return {"missing": self.names}


class ColumnCountMismatchError(MoveCsvError):
    code = "COLUMN_COUNT_MISMATCH"

    def __init__(self, row: int, actual: int, expected: int) -> None:
        self.row = row
        self.actual = actual
        self.expected = expected
        super().__init__(f"Row {row} has {actual} columns but expected {expected}")

    def details(self) -> Dict[str, Any]:
        return {"row": self.row, "actual": self.actual, "expected": self.expected}


class EmptyRequiredValueError(MoveCsvError):
    code = "EMPTY_REQUIRED_VALUE"

    def __init__(self, row: int) -> None:
        self.row = row
        super().__init__(f"Row {row} has empty values in required columns")

    def details(self) -> Dict[str, Any]:
        return {"row": self.row}


# ---------------------------------------------------------------------------
# Base64 / テキストユーティリティ
# ---------------------------------------------------------------------------


def decode_csv_b64(csv_b64: str) -> str:
    """/v0/transform の csv_b64 をマージ指示 CSV のテキストに戻す。

    メール等で折り返された Base64 も受け付けるよう空白類は除去し、
    それ以外の不正文字は validate=True で弾く。BOM 付きでも可。
    """
    try:
        raw = base64.b64decode("".join(csv_b64.split()), validate=True)
        return raw.decode("utf-8-sig")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise InvalidBase64Error("csv_b64 must be Base64-encoded UTF-8 CSV text") from exc


# ---------------------------------------------------------------------------
# 行トークナイザ
# ---------------------------------------------------------------------------


def tokenize_line(line: str) -> List[str]:
    """1 行をカンマで分割し、各フィールドを trim して返す。

    - '"' はクォート状態をトグルするだけで出力には含めない
    - クォート内のカンマは区切りとみなさない
    - "" によるエスケープは非対応。クォート数が奇数でもエラーにはしない
      （行末までトグル状態のまま読み進める）
    - 空行は [""] になる
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False

    for ch in line:
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(ch)

    fields.append("".join(current).strip())
    return fields


# ---------------------------------------------------------------------------
# CSV → MoveBatch
# ---------------------------------------------------------------------------


def _split_lines(csv_text: str) -> List[str]:
    # BOM 付き UTF-8 をそのまま貼られても先頭ヘッダ名が壊れないように
    # （前後の空白と BOM がどちらの順で並んでいても落とす）
    return csv_text.strip().lstrip("\ufeff").strip().split("\n")


def _find_missing_headers(headers: Sequence[str]) -> List[str]:
    return [name for name in REQUIRED_HEADERS if name not in headers]


def _resolve_retain_sku(sku: str, retain_sku: str) -> str:
    return RETAIN_SELF if retain_sku == sku else retain_sku


def transform_csv(csv_text: str, force: bool = False) -> MoveBatch:
    """SKU マージ CSV を MoveBatch に変換する。

    どこか 1 行でも不正なら MoveCsvError のサブクラスを投げ、
    途中までの結果は返さない。
    """

    # 1) 行分割（ヘッダ + 最低 1 行）
    lines = _split_lines(csv_text)
    if len(lines) < 2:
        raise InsufficientRowsError()

    # 2) ヘッダ検証
    headers = tokenize_line(lines[0])
    missing = _find_missing_headers(headers)
    if missing:
        raise MissingHeadersError(missing)

    # 3) 必須列の位置（同名列が複数あれば最初のもの）
    sku_idx = headers.index("sku")
    replace_idx = headers.index("skuToReplace")
    retain_idx = headers.index("retainSku")

    # 4) データ行
    moves: List[MoveRecord] = []
    for i in range(1, len(lines)):
        row_no = i + 1  # スプレッドシート上の行番号
        values = tokenize_line(lines[i])

        if len(values) != len(headers):
            raise ColumnCountMismatchError(row_no, len(values), len(headers))

        sku = values[sku_idx].strip()
        sku_to_replace = values[replace_idx].strip()
        retain_sku = values[retain_idx].strip()

        if not sku or not sku_to_replace or not retain_sku:
            raise EmptyRequiredValueError(row_no)

        moves.append(
            MoveRecord(
                sku=sku,
                sku_to_replace=sku_to_replace,
                retain_sku=_resolve_retain_sku(sku, retain_sku),
            )
        )

    return MoveBatch(force=force, moves=moves)
