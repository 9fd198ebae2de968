from __future__ import annotations

import logging
import re

import requests

from .http import HttpClient

logger = logging.getLogger(__name__)

VISION_URL = "https://vision.googleapis.com"

_DATA_URL_RE = re.compile(r"^data:[^;,]+;base64,", re.IGNORECASE)


def strip_data_url(image_data: str) -> str:
    """Drop a ``data:image/jpeg;base64,`` prefix if present."""
    return _DATA_URL_RE.sub("", image_data.strip(), count=1)


class VisionClient:
    def __init__(self, *, api_key: str, timeout_s: float = 30.0, retries: int = 2):
        self.api_key = api_key
        self.http = HttpClient(
            base_url=VISION_URL,
            headers={"Content-Type": "application/json"},
            timeout_s=timeout_s,
            retries=retries,
        )

    def detect_text(self, image_data: str) -> str:
        """Run TEXT_DETECTION on a base64 image and return the full text block."""
        content = strip_data_url(image_data)
        if not content:
            raise RuntimeError("No image data supplied")

        body = {
            "requests": [
                {
                    "image": {"content": content},
                    "features": [{"type": "TEXT_DETECTION", "maxResults": 1}],
                    "imageContext": {"languageHints": ["hi", "en"]},
                }
            ]
        }
        try:
            resp = self.http.post("/v1/images:annotate", params={"key": self.api_key}, json=body)
        except requests.RequestException as exc:
            raise RuntimeError(f"Vision API request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise RuntimeError(f"Vision API error {resp.status_code}: {resp.text[:500]}")
        try:
            data = resp.json()
        except ValueError as e:
            raise RuntimeError(f"Failed to decode Vision API response: {e}")

        first = (data.get("responses") or [{}])[0]
        if first.get("error"):
            raise RuntimeError(f"Vision API error: {first['error'].get('message', 'unknown')}")

        annotations = first.get("textAnnotations") or []
        text = annotations[0].get("description", "") if annotations else ""
        logger.info("Vision returned %d characters of text", len(text))
        return text
