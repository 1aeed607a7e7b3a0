# core/sku_merge/__init__.py

"""
SKU Merge CSV → JSON core package.

- models.py : Pydantic モデル定義（MoveRecord / MoveBatch / TransformRequest）
- service.py: メイン処理（CSV 行のトークナイズ + 検証 + MoveBatch 組み立て）

I/O は一切持たない。HTTP / CLI / Lambda からは同じ transform_csv を呼ぶ。
"""
