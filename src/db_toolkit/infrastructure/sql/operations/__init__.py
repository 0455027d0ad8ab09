"""Statement and pagination builders."""

from .paging import DEFAULT_ORDER_BY, PagePlan, plan_page
from .statements import Dialect, SqlStatement, StatementBuilder

__all__ = [
    "DEFAULT_ORDER_BY",
    "Dialect",
    "PagePlan",
    "SqlStatement",
    "StatementBuilder",
    "plan_page",
]
