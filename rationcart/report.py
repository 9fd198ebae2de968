from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

from .models import ACTIONABLE_PLATFORMS, Platform, PriceComparisonResult


@dataclass
class ComparisonReport:
    timestamp: str
    list_id: str | None
    total: int
    total_savings: Decimal
    recommended: dict[str, int]
    items: list[PriceComparisonResult] = field(default_factory=list)

    def summary_text(self) -> str:
        counts = "  ".join(f"{Platform(p).label}: {n}" for p, n in self.recommended.items())
        lines = [
            f"Run: {self.timestamp}  (list={self.list_id or '-'})",
            f"Items: {self.total}  Savings: ₹{_money(self.total_savings)}  {counts}",
            "",
        ]
        for i, it in enumerate(self.items, 1):
            prices = "  ".join(
                f"{p.label} {_money(it.price_on(p)) if it.price_on(p) is not None else 'N/A'}"
                for p in it.per_platform_price
            )
            lines.append(f"  {i}. {it.item_name}  x{it.quantity}")
            lines.append(
                f"     → {it.recommended_platform.label}  save ₹{_money(it.savings)}  ({prices})"
            )
        return "\n".join(lines)

    def as_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "list_id": self.list_id,
            "total": self.total,
            "total_savings": str(self.total_savings),
            "recommended": self.recommended,
            "items": [it.to_row(self.list_id) for it in self.items],
        }

    def write_json(self, path: str = "artifacts/comparison_report.json") -> str:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(self.as_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        return str(out)


def _money(value: Decimal | None) -> str:
    if value is None:
        return "0"
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return str(value.quantize(Decimal("0.01")))


def build_report(items: list[PriceComparisonResult], *, list_id: str | None = None) -> ComparisonReport:
    recommended = {p.value: 0 for p in ACTIONABLE_PLATFORMS}
    for it in items:
        recommended[it.recommended_platform.value] = recommended.get(it.recommended_platform.value, 0) + 1
    return ComparisonReport(
        timestamp=datetime.now(timezone.utc).isoformat(),
        list_id=list_id,
        total=len(items),
        total_savings=sum((it.savings for it in items), Decimal(0)),
        recommended=recommended,
        items=items,
    )
