"""
Cash Flow — Value object датированного cash flow

Нерегулярные cash flows (XNPV/XIRR/XMIRR) передаются как пары
(when, amount). DatedCashFlow — именованный вариант такой пары;
обычный tuple принимается везде наравне с ним.
"""

import datetime
from typing import Any, NamedTuple, Union

# Момент cash flow: календарная дата или целый номер дня
When = Union[datetime.date, int]


class DatedCashFlow(NamedTuple):
    """Cash flow, привязанный к дате."""
    when: When  # datetime.date или номер дня
    amount: Any  # Сумма в любом поддерживаемом scalar типе
