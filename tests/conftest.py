import sys
from pathlib import Path

import pytest

# tests/ から見て 1 つ上 = プロジェクトルート
PROJECT_ROOT = Path(__file__).resolve().parents[1]

# core / backend を import できるようにプロジェクトルートを sys.path の先頭に追加
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)


MOVES_CSV = (
    "sku,skuToReplace,retainSku\n"
    "197801171173,197801171173-DUPLICATE-1,197801171173\n"
    "FL-PE-BASE-105,FL-PE-BASE-105-DUPLICATE-1,FL-PE-BASE-75\n"
)


@pytest.fixture
def csv_file(tmp_path):
    """MOVES_CSV（もしくは任意のテキスト）を書き出した .csv のパスを返す"""

    def _write(text=MOVES_CSV, name="moves.csv"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
