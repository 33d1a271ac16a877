from .event_outcome import EventOutcome as EventOutcome
from .transaction_status import TransactionStatus as TransactionStatus
from .transaction_type import TransactionType as TransactionType
