"""Request/response surface for the hosted app: OCR, price comparison, cart.

Every operation authenticates the caller first; :class:`AuthError` is the only
failure that escapes. Database writes are best-effort.
"""
from __future__ import annotations

import logging
import random
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from .cart import simulate_cart_automation
from .compare import DEFAULT_BATCH_SIZE, DEFAULT_COURTESY_DELAY_S, compare_items
from .match import ProductMatcher
from .models import CartItem, ComparisonRequest, Platform
from .normalize import extract_items
from .ocr import VisionClient
from .supabase import SupabaseClient

logger = logging.getLogger(__name__)


def _as_request(raw: dict[str, Any]) -> ComparisonRequest | None:
    name = str(raw.get("item_name") or raw.get("itemName") or raw.get("normalized_name") or "").strip()
    if not name:
        return None
    return ComparisonRequest(
        item_name=name,
        quantity=str(raw.get("quantity") or "1"),
        normalized_name=raw.get("normalized_name") or None,
    )


def _as_cart_item(raw: dict[str, Any]) -> CartItem | None:
    name = str(raw.get("item_name") or raw.get("name") or "").strip()
    if not name:
        return None
    price = raw.get("price")
    try:
        price = Decimal(str(price)) if price is not None else None
    except InvalidOperation:
        price = None
    return CartItem(item_name=name, quantity=str(raw.get("quantity") or "1"), price=price)


class RationCartService:
    def __init__(
        self,
        *,
        supabase: SupabaseClient,
        matcher: ProductMatcher,
        vision: VisionClient | None = None,
        platforms: Iterable[Platform] | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        courtesy_delay_s: float = DEFAULT_COURTESY_DELAY_S,
        cart_step_delay_s: float = 0.5,
        rng: random.Random | None = None,
    ):
        self.supabase = supabase
        self.matcher = matcher
        self.vision = vision
        self.platforms = tuple(platforms) if platforms else None
        self.batch_size = batch_size
        self.courtesy_delay_s = courtesy_delay_s
        self.cart_step_delay_s = cart_step_delay_s
        self.rng = rng

    def process_ocr(self, access_token: str | None, list_id: str, image_data: str | None) -> dict[str, Any]:
        user = self.supabase.get_user(access_token)
        list_filter = {"id": f"eq.{list_id}", "user_id": f"eq.{user.id}"}
        if not isinstance(image_data, str) or not image_data.strip():
            return {"success": False, "error": "No image data provided"}
        logger.info("Processing OCR for list %s", list_id)

        self._write("ration_lists", {"status": "processing"}, list_filter)

        if self.vision is None:
            self._write("ration_lists", {"status": "failed"}, list_filter)
            return {"success": False, "error": "OCR provider not configured"}
        try:
            text = self.vision.detect_text(image_data)
        except RuntimeError as exc:
            logger.error("OCR failed for list %s: %s", list_id, exc)
            self._write("ration_lists", {"status": "failed"}, list_filter)
            return {"success": False, "error": str(exc)}

        items = extract_items(text)
        logger.info("Extracted %d items for list %s", len(items), list_id)

        self._write(
            "ration_lists",
            {
                "raw_ocr_text": text,
                "extracted_items": [it.as_dict() for it in items],
                "status": "completed",
            },
            list_filter,
        )
        return {
            "success": True,
            "extracted_text": text,
            "extracted_items": [it.as_dict() for it in items],
        }

    def scrape_prices(self, access_token: str | None, list_id: str, items: list[dict[str, Any]]) -> dict[str, Any]:
        self.supabase.get_user(access_token)
        wanted = [r for r in (_as_request(raw) for raw in items or []) if r is not None]
        logger.info("Comparing prices for list %s: %d items", list_id, len(wanted))

        kwargs = {}
        if self.platforms:
            kwargs["platforms"] = self.platforms
        results = compare_items(
            wanted,
            self.matcher,
            batch_size=self.batch_size,
            courtesy_delay_s=self.courtesy_delay_s,
            **kwargs,
        )
        rows = [r.to_row(list_id) for r in results]

        if rows:
            try:
                self.supabase.insert("price_comparisons", rows)
            except RuntimeError as exc:
                logger.error("Error inserting price comparisons: %s", exc)

        return {"success": True, "comparisons": rows}

    def automate_cart(
        self,
        access_token: str | None,
        list_id: str,
        platform: Platform | str,
        items: list[dict[str, Any]],
    ) -> dict[str, Any]:
        user = self.supabase.get_user(access_token)
        try:
            platform = Platform(platform)
        except ValueError:
            return {"success": False, "error": f"Unsupported platform: {platform!r}"}
        cart_items = [c for c in (_as_cart_item(raw) for raw in items or []) if c is not None]
        logger.info("Automating cart for platform %s: %d items", platform.value, len(cart_items))

        session_id = None
        try:
            created = self.supabase.insert(
                "cart_sessions",
                {
                    "user_id": user.id,
                    "list_id": list_id,
                    "platform": platform.value,
                    "items": items,
                    "status": "processing",
                },
            )
            session_id = created[0].get("id") if created else None
        except RuntimeError as exc:
            logger.error("Could not create cart session: %s", exc)

        result = simulate_cart_automation(
            platform, cart_items, rng=self.rng, step_delay_s=self.cart_step_delay_s
        )

        if session_id is not None:
            self._write(
                "cart_sessions",
                {"status": "completed", "automation_log": result.log},
                {"id": f"eq.{session_id}"},
            )

        return {
            "success": True,
            "cart_session_id": session_id,
            "automation_log": result.log,
            "platform_url": result.platform_url,
            "message": (
                f"Successfully automated cart for {result.platform.label}. "
                "Please visit the platform to complete checkout."
            ),
        }

    def _write(self, table: str, values: dict[str, Any], filters: dict[str, str]) -> None:
        try:
            self.supabase.update(table, values, filters=filters)
        except RuntimeError as exc:
            logger.error("Failed to update %s: %s", table, exc)
