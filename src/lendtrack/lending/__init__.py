"""Item lending module.

Provides:
- Borrow and return transactions across stock, history and active loans
- The append-only loan history store
- The per-(user, item) active loan aggregate
- Whole-operation retry after storage conflicts
"""

from .engine import LendingEngine
from .models import ActiveLoan, LoanRecord
from .retry import retry_on_conflict
from .schemas import LoanRecordView, ReturnPolicy, ReturnReceipt

__all__ = [
    "LendingEngine",
    "ActiveLoan",
    "LoanRecord",
    "retry_on_conflict",
    "LoanRecordView",
    "ReturnPolicy",
    "ReturnReceipt",
]
