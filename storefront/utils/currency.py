# storefront/utils/currency.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from storefront.core.config import settings

CURRENCY_CODE = "BDT"


def format_currency(amount: Optional[Union[Decimal, int, float]], symbol: Optional[str] = None) -> str:
    """
    Форматирует сумму в BDT без копеек и разделителей тысяч: 1250 -> '৳1250'.
    None трактуется как 0, как и на витрине.
    """
    if amount is None:
        amount = Decimal("0")
    value = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{symbol if symbol is not None else settings.CURRENCY_SYMBOL}{value}"
