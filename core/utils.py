"""Display formatting helpers."""

CRORE = 10_000_000
LAKH = 100_000


def format_number(value, decimals=0):
    """Group digits the Indian way: ``1234567`` -> ``12,34,567``."""
    sign = "-" if value < 0 else ""
    text = f"{abs(value):.{decimals}f}"
    whole, _, frac = text.partition(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}{whole}.{frac}" if frac else f"{sign}{whole}"


def format_currency(amount, compact=False):
    """Rupee amount, optionally compacted to Cr / L / K."""
    if amount == 0:
        return "₹0"
    sign = "-" if amount < 0 else ""
    value = abs(amount)
    if compact:
        if value >= CRORE:
            return f"{sign}₹{value / CRORE:.1f}Cr"
        if value >= LAKH:
            return f"{sign}₹{value / LAKH:.1f}L"
        if value >= 1000:
            return f"{sign}₹{value / 1000:.1f}K"
    return f"{sign}₹{format_number(round(value))}"


def format_percentage(value, decimals=1):
    return f"{value:.{decimals}f}%"


def parse_currency(text):
    """Read a typed amount such as ``"₹12,50,000"``; unparseable text is 0."""
    try:
        return float(str(text).replace("₹", "").replace(",", "").strip())
    except ValueError:
        return 0.0
