"""
Expense categorisation by keyword.

Line-item names are free text chosen by each organisation, so categories
are a best-effort substring match against an explicit table. The table is
the same for every provider and can be replaced per deployment
(settings.expense_category_keywords) or per call.
"""

from typing import Mapping, Optional, Sequence

DEFAULT_CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "subcontractor": ("subcontract", "sub-contract", "contract labor", "contract labour"),
    "owner_related": ("owner", "shareholder", "director", "drawings"),
    "payroll": ("payroll", "wages", "salar", "superannuation", "kiwisaver"),
    "rent": ("rent", "lease"),
    "software": ("software", "subscription", "saas"),
}


class ExpenseCategorizer:
    """
    Assign a category to an expense line name.

    First matching category wins, in table order.
    """

    def __init__(self, table: Optional[Mapping[str, Sequence[str]]] = None):
        source = table if table is not None else DEFAULT_CATEGORY_KEYWORDS
        self.table: dict[str, tuple[str, ...]] = {
            category: tuple(k.lower() for k in keywords if k)
            for category, keywords in source.items()
        }

    def categorize(self, name: str) -> Optional[str]:
        lowered = (name or "").lower()
        if not lowered:
            return None
        for category, keywords in self.table.items():
            if any(keyword in lowered for keyword in keywords):
                return category
        return None
