"""
Text overlay content for listing videos.

Builds the HTML snippets rendered over the slideshow. Sizes target a
1080x1920 vertical frame, with text kept in the lower thumb zone.
"""

from dataclasses import dataclass
from html import escape


@dataclass(frozen=True)
class ParsedAddress:
    street_address: str
    suburb: str


def parse_address(address: str) -> ParsedAddress:
    """
    Split a free-text address on its first comma.

    "123 Main St, Springfield" -> ("123 Main St", "Springfield")
    "123 Main St"              -> ("123 Main St", "")
    """
    street, sep, rest = address.partition(",")
    if not sep:
        return ParsedAddress(street_address=address.strip(), suburb="")
    return ParsedAddress(street_address=street.strip() or address.strip(), suburb=rest.strip())


def format_price(price: float) -> str:
    """Format a price with thousands separators: 1250000 -> '$1,250,000'."""
    if float(price).is_integer():
        return f"${int(price):,}"
    return f"${price:,.2f}"


def address_markup(address: ParsedAddress) -> str:
    return (
        "<div style=\"font-family: 'Inter', sans-serif; text-align: center; padding: 24px 16px; "
        "background: linear-gradient(to top, rgba(0,0,0,0.8), rgba(0,0,0,0)); width: 100%;\">"
        "<p style=\"font-size: 42px; color: white; text-shadow: 3px 3px 6px rgba(0,0,0,0.9); "
        f"margin: 0; font-weight: 700; line-height: 1.2;\">{escape(address.street_address)}</p>"
        "<p style=\"font-size: 28px; color: #e0e0e0; text-shadow: 2px 2px 4px rgba(0,0,0,0.8); "
        f"margin: 12px 0 0 0; font-weight: 500;\">{escape(address.suburb)}</p>"
        "</div>"
    )


def format_count(count: float) -> str:
    """Whole counts without a decimal point: 3 -> "3", 2.5 -> "2.5"."""
    if float(count).is_integer():
        return str(int(count))
    return f"{count:g}"


def stats_markup(price: float, bed_count: float, bath_count: float) -> str:
    return (
        "<div style=\"font-family: 'Inter', sans-serif; text-align: center; padding: 32px 24px; "
        "background: rgba(0,0,0,0.75); border-radius: 24px;\">"
        "<p style=\"font-size: 56px; color: #FFD700; margin: 0; font-weight: 800; "
        f"text-shadow: 2px 2px 8px rgba(0,0,0,0.5);\">{escape(format_price(price))}</p>"
        "<p style=\"font-size: 32px; color: white; margin: 16px 0 0 0; font-weight: 600;\">"
        f"{format_count(bed_count)} Bed &middot; {format_count(bath_count)} Bath</p>"
        "</div>"
    )


def call_to_action_markup(text: str) -> str:
    return (
        "<div style=\"font-family: 'Inter', sans-serif; text-align: center; padding: 40px 32px; "
        "background: linear-gradient(135deg, rgba(139,92,246,0.95), rgba(168,85,247,0.95)); "
        "border-radius: 28px;\">"
        "<p style=\"font-size: 36px; color: white; margin: 0; font-weight: 700; "
        f"text-transform: uppercase; letter-spacing: 2px;\">{escape(text)}</p>"
        "</div>"
    )
