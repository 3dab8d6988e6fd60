from .app_error import AppError
from .company import Company
from .sequence_counter import CounterName, SequenceCounter

__all__ = [
    "AppError",
    "Company",
    "CounterName",
    "SequenceCounter",
]
