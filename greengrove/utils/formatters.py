# greengrove/utils/formatters.py
from datetime import datetime
import pytz
from decimal import Decimal, ROUND_HALF_UP
from ..config import Config

CENT = Decimal("0.01")

def to_money(amount) -> Decimal:
    """Quantize a price or total to cents"""
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)

def format_price(amount: Decimal, currency: str = None) -> str:
    """Price with currency code and thousands separators"""
    text = f"{to_money(amount):,.2f}"
    return f"{currency or Config.DEFAULT_CURRENCY} {text}"

def localize_datetime(dt: datetime) -> datetime:
    """Attach the shop timezone to naive datetimes"""
    if dt.tzinfo is None:
        shop_tz = pytz.timezone(Config.TIMEZONE)
        return shop_tz.localize(dt)
    return dt

def format_datetime(dt: datetime) -> str:
    """Timestamp in the shop timezone; naive values are taken as UTC"""
    shop_tz = pytz.timezone(Config.TIMEZONE)
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt.astimezone(shop_tz).strftime("%Y-%m-%d %H:%M:%S")
