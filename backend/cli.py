"""CLI entry point: CSV を MoveBatch JSON に変換 / GoodDay へ直接送信する。"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import httpx

from backend.fastapi_app.config import get_settings
from backend.fastapi_app.relay import MoveRelay, UpstreamError
from core.sku_merge.service import SAMPLE_CSV, MoveCsvError, transform_csv

logger = logging.getLogger(__name__)


def _read_csv(path: str) -> str:
    # Excel が吐く BOM 付き UTF-8 もそのまま読めるように
    return Path(path).read_text(encoding="utf-8-sig")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sku-merge",
        description="Convert SKU merge CSV files into GoodDay items/move payloads",
    )
    sub = p.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="print the JSON payload for a CSV file")
    convert.add_argument("file")
    convert.add_argument("--force", action="store_true")
    convert.add_argument("--output", "-o", help="write JSON here instead of stdout")

    send = sub.add_parser("send", help="convert a CSV file and PUT it to GoodDay")
    send.add_argument("file")
    send.add_argument("--force", action="store_true")
    send.add_argument("--api-key", default=os.getenv("GOODDAY_API_KEY"))

    sub.add_parser("sample", help="print a sample CSV file")
    return p


def _cmd_convert(args: argparse.Namespace) -> int:
    batch = transform_csv(_read_csv(args.file), force=args.force)
    text = json.dumps(batch.to_payload(), indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
        logger.info("Wrote %d move(s) to %s", len(batch.moves), args.output)
    else:
        print(text)
    return 0


def _cmd_send(args: argparse.Namespace) -> int:
    api_key = (args.api_key or "").strip()
    if not api_key:
        print("API key is required (--api-key or GOODDAY_API_KEY)", file=sys.stderr)
        return 1

    batch = transform_csv(_read_csv(args.file), force=args.force)
    relay = MoveRelay(get_settings())
    result = asyncio.run(relay.send(batch, api_key))
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    args = _build_parser().parse_args(argv)

    if args.command == "sample":
        sys.stdout.write(SAMPLE_CSV)
        return 0

    try:
        if args.command == "convert":
            return _cmd_convert(args)
        return _cmd_send(args)
    except MoveCsvError as exc:
        print(f"Error processing CSV: {exc}", file=sys.stderr)
    except UpstreamError as exc:
        print(f"{exc}: {exc.details}", file=sys.stderr)
    except httpx.HTTPError as exc:
        print(f"Request failed: {exc}", file=sys.stderr)
    except UnicodeDecodeError:
        print(f"{args.file} is not UTF-8 text", file=sys.stderr)
    except OSError as exc:
        print(f"File error: {exc}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
