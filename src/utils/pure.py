import re
from typing import Iterable, List, Literal, Optional, Sequence

from backend.models import Category, Product

CURRENCY_SYMBOL = "USh"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# +2567XXXXXXXX, 2567XXXXXXXX or 07XXXXXXXX once spaces and dashes are dropped
_UG_PHONE_RE = re.compile(r"^(?:\+?256|0)7\d{8}$")


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Build a Markdown table.

    Args:
        headers: column headers, or None to promote the first row.
        rows: table body, values are converted with str().
        aligns: 'l', 'c' or 'r' per column, centered when omitted.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [str(h) for h in headers]
    if aligns is None:
        aligns = ["c"] * len(headers)
    elif len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    markers = {"l": ":---", "c": ":---:", "r": "---:"}
    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(markers[a] for a in aligns) + " |",
    ]
    lines += ["| " + " | ".join(str(cell) for cell in row) + " |" for row in rows]
    return "\n".join(lines)


def format_currency(amount: float) -> str:
    """USh 1,234,567 style; shillings are shown without decimals."""
    return f"{CURRENCY_SYMBOL} {round(amount):,}"


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")


def validate_email(email: str) -> bool:
    return bool(_EMAIL_RE.match((email or "").strip()))


def validate_phone_number(phone: str) -> bool:
    compact = re.sub(r"[\s-]", "", phone or "")
    return bool(_UG_PHONE_RE.match(compact))


def filter_by_category(
    products: Iterable[Product], categories: Sequence[Category], name: str
) -> List[Product]:
    """Products whose category name matches, case-insensitive; 'all' keeps everything."""
    products = list(products)
    if not name or name.lower() == "all":
        return products
    wanted = {c.id for c in categories if c.name.lower() == name.lower()}
    return [p for p in products if p.category_id in wanted]
