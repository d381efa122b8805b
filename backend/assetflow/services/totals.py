from __future__ import annotations
"""Money arithmetic for bill line items.

Every place that derives item totals (asset creation, direct item edits,
approval of update requests) goes through ``item_totals`` so previewed and
stored figures agree.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping

from assetflow.utils.validation import coerce_number


@dataclass(frozen=True)
class ItemTotals:
    amount: float
    cgst_amount: float
    sgst_amount: float
    grand_total: float


def item_totals(quantity: float, rate: float, cgst: float, sgst: float) -> ItemTotals:
    amount = quantity * rate
    cgst_amount = amount * cgst / 100
    sgst_amount = amount * sgst / 100
    return ItemTotals(amount, cgst_amount, sgst_amount, amount + cgst_amount + sgst_amount)


def normalize_item(item: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of item with numeric fields coerced and amount/grandTotal recomputed.

    Client supplied amount/grandTotal are ignored.
    """
    quantity = coerce_number(item.get('quantity'))
    rate = coerce_number(item.get('rate'))
    cgst = coerce_number(item.get('cgst'))
    sgst = coerce_number(item.get('sgst'))
    totals = item_totals(quantity, rate, cgst, sgst)
    out = dict(item)
    out.update({
        'particulars': item.get('particulars') or '',
        'serialNumber': item.get('serialNumber') or '',
        'quantity': quantity,
        'rate': rate,
        'cgst': cgst,
        'sgst': sgst,
        'amount': totals.amount,
        'grandTotal': totals.grand_total,
    })
    return out


def normalize_items(items: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return [normalize_item(i) for i in items]


def sum_items(items: Iterable[Mapping[str, Any]]):
    """(totalAmount, grandTotal) for an item list."""
    items = list(items)
    total = sum(coerce_number(i.get('amount')) for i in items)
    grand = sum(coerce_number(i.get('grandTotal')) for i in items)
    return total, grand


def refresh_asset_totals(asset) -> None:
    """Re-derive asset level totals.

    Itemized assets sum their lines; single-line assets use quantity x price and
    keep whatever grand total was recorded on the bill.
    """
    if asset.items:
        asset.total_amount, asset.grand_total = sum_items(asset.items)
    else:
        asset.total_amount = (asset.quantity or 0) * (asset.price_per_item or 0)

__all__ = ['ItemTotals', 'item_totals', 'normalize_item', 'normalize_items', 'sum_items', 'refresh_asset_totals']
