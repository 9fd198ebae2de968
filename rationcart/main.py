from __future__ import annotations

import argparse
import base64
import logging
import random
import sys
from datetime import timedelta
from pathlib import Path

from .cache import MemoryPriceCache, SupabasePriceCache
from .cart import simulate_cart_automation
from .compare import compare_items
from .config import REQUIRED_KEYS, Config, Tuning
from .match import ProductMatcher
from .models import ACTIONABLE_PLATFORMS, ALL_PLATFORMS, CartItem, ComparisonRequest, ExtractedItem, Platform
from .normalize import extract_items
from .ocr import VisionClient
from .report import build_report
from .retailers import RetailerClient
from .supabase import SupabaseClient

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="rationcart")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = p.add_subparsers(dest="cmd", required=False)

    p_config = sub.add_parser("config", help="Config commands")
    sub_config = p_config.add_subparsers(dest="config_cmd", required=True)

    sub_config.add_parser("keys", help="List required configuration keys")

    p_check = sub_config.add_parser("check", help="Validate configuration is filled")
    p_check.add_argument("--infisical", action="store_true", help="Read secrets from Infisical instead of env")
    p_check.add_argument("--env", default="dev")

    p_extract = sub.add_parser("extract", help="Extract items from an OCR text file")
    p_extract.add_argument("file", help="UTF-8 text file, one item per line ('-' for stdin)")

    def add_compare_args(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--offline", action="store_true", help="Skip live search pages, use fallback prices")
        sp.add_argument("--aux", action="store_true", help="Also consult auxiliary price sources")
        sp.add_argument("--seed", type=int, default=None, help="Seed for fallback prices of unknown items")
        sp.add_argument("--persist", action="store_true", help="Use the Supabase price_cache table")
        sp.add_argument("--list-id", default=None, help="Opaque list/session id carried into the report")
        sp.add_argument("--report", default=None, help="Write a JSON report to this path")

    p_compare = sub.add_parser("compare", help="Extract items and compare prices")
    p_compare.add_argument("file", help="UTF-8 text file, one item per line ('-' for stdin)")
    add_compare_args(p_compare)

    p_scan = sub.add_parser("scan", help="OCR a list photo with Google Vision, then compare")
    p_scan.add_argument("image", help="JPEG/PNG photo of the handwritten list")
    add_compare_args(p_scan)

    p_cart = sub.add_parser("cart", help="Simulate add-to-cart for items recommended on a platform")
    p_cart.add_argument("platform", choices=[pl.value for pl in ACTIONABLE_PLATFORMS])
    p_cart.add_argument("file", help="UTF-8 text file, one item per line ('-' for stdin)")
    add_compare_args(p_cart)

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.version:
        print("0.1.0")
        return 0

    if args.cmd is None:
        p.print_help()
        return 0

    if args.cmd == "config":
        if args.config_cmd == "keys":
            for k in REQUIRED_KEYS:
                print(k)
            return 0

        if args.config_cmd == "check":
            # Intentionally do not print secret values
            if args.infisical:
                Config.load_from_infisical(env=args.env)
                print(f"OK: Infisical config present for env={args.env}")
            else:
                Config.from_env()
                print("OK: config present in environment")
            return 0

    if args.cmd == "extract":
        items = extract_items(_read_text(args.file))
        if not items:
            print("No items found.")
            return 1
        _print_items(items)
        return 0

    if args.cmd == "compare":
        return _run_compare(args, _read_text(args.file))

    if args.cmd == "scan":
        cfg = Config.from_env()
        vision = VisionClient(
            api_key=cfg.google_vision_api_key,
            timeout_s=cfg.tuning.request_timeout_s,
            retries=cfg.tuning.request_retries,
        )
        image_b64 = base64.b64encode(Path(args.image).read_bytes()).decode("ascii")
        text = vision.detect_text(image_b64)
        print("Extracted text:")
        print(text)
        print()
        return _run_compare(args, text)

    if args.cmd == "cart":
        return _run_cart(args)

    raise RuntimeError("unreachable")


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _print_items(items: list[ExtractedItem]) -> None:
    for i, it in enumerate(items, 1):
        print(f"{i}. {it.raw_text}")
        print(f"   → {it.normalized_name}  {it.quantity} {it.unit}")


def _build_matcher(args, tuning: Tuning) -> ProductMatcher:
    ttl = timedelta(hours=tuning.cache_ttl_hours)
    if args.persist:
        cfg = Config.from_env()
        client = SupabaseClient(
            url=cfg.supabase_url,
            service_key=cfg.supabase_service_key,
            timeout_s=tuning.request_timeout_s,
            retries=tuning.request_retries,
        )
        cache = SupabasePriceCache(client, ttl=ttl)
    else:
        cache = MemoryPriceCache(ttl=ttl)

    fetch = None
    if not args.offline:
        fetch = RetailerClient(timeout_s=tuning.request_timeout_s, retries=tuning.request_retries)

    rng = random.Random(args.seed) if args.seed is not None else None
    return ProductMatcher(fetch=fetch, cache=cache, rng=rng)


def _compare(args, text: str):
    tuning = Tuning.from_env()
    items = extract_items(text)
    print(f"Extracted {len(items)} items.")
    if not items:
        return items, []

    matcher = _build_matcher(args, tuning)
    platforms = ALL_PLATFORMS if args.aux else ACTIONABLE_PLATFORMS
    results = compare_items(
        [ComparisonRequest.from_extracted(it) for it in items],
        matcher,
        platforms=platforms,
        batch_size=tuning.batch_size,
        courtesy_delay_s=0 if args.offline else tuning.courtesy_delay_s,
    )
    return items, results


def _run_compare(args, text: str) -> int:
    items, results = _compare(args, text)
    if not items:
        print("No items found.")
        return 1

    report = build_report(results, list_id=args.list_id)
    print("\n" + report.summary_text())
    if args.report:
        path = report.write_json(args.report)
        print(f"\nReport written to {path}")
    return 0


def _run_cart(args) -> int:
    platform = Platform(args.platform)
    items, results = _compare(args, _read_text(args.file))

    chosen = [
        CartItem(item_name=r.item_name, quantity=r.quantity, price=r.price_on(platform))
        for r in results
        if r.recommended_platform == platform
    ]
    if not chosen:
        print(f"No items are cheapest on {platform.label}.")
        return 1

    rng = random.Random(args.seed) if args.seed is not None else None
    result = simulate_cart_automation(platform, chosen, rng=rng, step_delay_s=0)
    print(result.log)
    print(f"\nOpen {result.platform_url} to review and check out.")
    return 0 if result.failed == 0 else 2


if __name__ == "__main__":
    raise SystemExit(main())
