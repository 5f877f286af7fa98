# Overview: The two sales pipelines expressed as one parameterized engine.

"""
A Pipeline names the four entity types one sales engine runs over:

- catalog_model: what is sold (needs ``id``, ``display_name``, ``unit_price``)
- sale_model: the sale record (``from_catalog()``, ``catalog_id``, ``units``,
  ``sold_at``, ``session_id``, ``line_total``, ``item_name``)
- session_model: accounting period (``id``, ``opened_at``)
- report_model: closure rollup (``session_id``, ``total_revenue``,
  ``total_sales``, ``notes``, ``date``)

sales_service, accounting_service and reporting_service only ever talk to
these attributes, so the merchandise and kitchen flows cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import NotFoundError
from ..models import (
    AccountSession,
    FoodItem,
    FoodSale,
    KitchenReport,
    KitchenSession,
    Product,
    Report,
    Sale,
)


@dataclass(frozen=True)
class Pipeline:
    name: str
    label: str
    catalog_model: type
    sale_model: type
    session_model: type
    report_model: type
    # Only the merchandise catalog keeps a stock ledger
    tracks_stock: bool = False


MOTHERCARE = Pipeline(
    name="mothercare",
    label="Mothercare",
    catalog_model=Product,
    sale_model=Sale,
    session_model=AccountSession,
    report_model=Report,
    tracks_stock=True,
)

KITCHEN = Pipeline(
    name="kitchen",
    label="Kitchen",
    catalog_model=FoodItem,
    sale_model=FoodSale,
    session_model=KitchenSession,
    report_model=KitchenReport,
)

PIPELINES: dict[str, Pipeline] = {p.name: p for p in (MOTHERCARE, KITCHEN)}


def get_pipeline(name: str | Pipeline) -> Pipeline:
    if isinstance(name, Pipeline):
        return name
    pipeline = PIPELINES.get((name or "").strip().lower())
    if pipeline is None:
        raise NotFoundError(f"Unknown pipeline: {name}", details={"known": sorted(PIPELINES)})
    return pipeline
