"""
Plain-text alert notifications and WhatsApp deep links.

Templates are fixed to English with Naira amounts. Building the ``wa.me``
URL is as far as this module goes; opening it or sending it is the caller's job.
"""
import re
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Union
from urllib.parse import quote

from app.config import settings
from app.schemas.alert import Alert

NAIRA = "₦"
DEFAULT_SUGGESTED_DISCOUNT = 20
STOCK_ALERT_TYPES = ("low_stock", "out_of_stock")

# Characters encodeURIComponent leaves alone, on top of quote()'s own safe set.
_URI_COMPONENT_SAFE = "!~*'()"
_NON_DIGITS = re.compile(r"\D")


def format_naira(amount: Optional[Union[Decimal, int, float]]) -> str:
    whole = Decimal(str(amount or 0)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{NAIRA}{whole:,}"


def format_short_date(value: Union[date, datetime]) -> str:
    """5 Jan 2025"""
    return f"{value.day} {value.strftime('%b')} {value.year}"


def format_long_date(value: Union[date, datetime]) -> str:
    """Sunday, 5 Jan 2025"""
    return f"{value.strftime('%A')}, {format_short_date(value)}"


def normalize_phone(phone: Optional[str]) -> str:
    return _NON_DIGITS.sub("", phone or "")


def build_whatsapp_url(message: str, phone: Optional[str], base_url: Optional[str] = None) -> str:
    base = (base_url or settings.WHATSAPP_BASE_URL).rstrip("/")
    encoded = quote(message, safe=_URI_COMPONENT_SAFE)
    return f"{base}/{normalize_phone(phone)}?text={encoded}"


def _expiry_message(alert: Alert) -> str:
    expiry = format_short_date(alert.expiry_date) if alert.expiry_date else "N/A"
    discount = alert.suggested_discount_percent or DEFAULT_SUGGESTED_DISCOUNT
    return (
        "🚨 *PharmaTrack AI: Expiry Alert*\n"
        "\n"
        "Boss, you have stock nearing expiry!\n"
        "\n"
        f"📦 *Product:* {alert.product_name}\n"
        f"🗓️ *Expiry Date:* {expiry} ({alert.days_until_expiry} days left)\n"
        f"💰 *Value at Risk:* {format_naira(alert.value_at_risk)}\n"
        "\n"
        f"💡 *AI Suggestion:* Apply a {discount}% Discount now to clear this stock "
        "before it's a total loss."
    )


def _stock_message(alert: Alert) -> str:
    return (
        "📉 *PharmaTrack AI: Low Stock Alert*\n"
        "\n"
        "You are running out of a fast-moving item!\n"
        "\n"
        f"📦 *Product:* {alert.product_name}\n"
        f"📊 *Current Stock:* {alert.current_stock} units left\n"
        f"⏱️ *Estimated Empty In:* {alert.estimated_days_until_empty} days\n"
        "\n"
        f"🛒 *Suggested Reorder:* {alert.suggested_reorder_quantity} units"
    )


def format_single_alert_message(alert: Alert) -> str:
    if alert.type == "expiry":
        return _expiry_message(alert)
    return _stock_message(alert)


def single_alert_whatsapp_url(alert: Alert, destination_phone: Optional[str]) -> str:
    return build_whatsapp_url(format_single_alert_message(alert), destination_phone)


def total_value_at_risk(alerts: Iterable[Alert]) -> Decimal:
    """Money at risk from expiring stock; stock-class alerts never contribute."""
    return sum(
        (Decimal(a.value_at_risk or 0) for a in alerts if a.type == "expiry"),
        Decimal("0"),
    )


def _section(lines: List[str], limit: Optional[int]) -> str:
    shown = lines if limit is None else lines[:limit]
    text = "".join(f"• {line}\n" for line in shown)
    hidden = len(lines) - len(shown)
    if hidden > 0:
        text += f"  ...and {hidden} more\n"
    return text


def _expiry_line(alert: Alert) -> str:
    days = alert.days_until_expiry or 0
    days_text = "EXPIRED" if days <= 0 else f"{days}d left"
    return f"{alert.product_name}: {days_text} ({format_naira(alert.value_at_risk)})"


def _stock_line(alert: Alert) -> str:
    stock_text = "OUT OF STOCK" if alert.current_stock == 0 else f"{alert.current_stock} units"
    return f"{alert.product_name}: {stock_text}"


def format_digest_message(
    alerts: Iterable[Alert],
    now: Optional[Union[date, datetime]] = None,
    pharmacy_name: Optional[str] = None,
    max_items_per_section: Optional[int] = None,
) -> str:
    alerts = list(alerts)
    now = now or datetime.now()
    expiry_alerts = [a for a in alerts if a.type == "expiry"]
    stock_alerts = [a for a in alerts if a.type in STOCK_ALERT_TYPES]

    heading = pharmacy_name or "PharmaTrack"
    message = f"📊 *{heading} Daily Digest for {format_long_date(now)}*\n\n"

    if expiry_alerts:
        message += f"⚠️ *Expiring Items ({len(expiry_alerts)})*\n"
        message += _section([_expiry_line(a) for a in expiry_alerts], max_items_per_section)
        message += "\n"

    if stock_alerts:
        message += f"📉 *Low Stock Items ({len(stock_alerts)})*\n"
        message += _section([_stock_line(a) for a in stock_alerts], max_items_per_section)
        message += "\n"

    message += f"💰 *Total Value at Risk:* {format_naira(total_value_at_risk(expiry_alerts))}\n\n"
    message += "📱 Log in to PharmaTrack to take action."
    return message


def digest_whatsapp_url(
    alerts: Iterable[Alert],
    destination_phone: Optional[str],
    now: Optional[Union[date, datetime]] = None,
    pharmacy_name: Optional[str] = None,
    max_items_per_section: Optional[int] = None,
) -> str:
    message = format_digest_message(
        alerts, now=now, pharmacy_name=pharmacy_name, max_items_per_section=max_items_per_section,
    )
    return build_whatsapp_url(message, destination_phone)
