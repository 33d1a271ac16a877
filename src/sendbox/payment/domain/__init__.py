from .entity import Transaction as Transaction
from .enum import EventOutcome as EventOutcome
from .enum import TransactionStatus as TransactionStatus
from .enum import TransactionType as TransactionType
from .gateway import PaymentProcessor as PaymentProcessor
from .repository import TransactionRepository as TransactionRepository
from .value_object import CaptureFailed as CaptureFailed
from .value_object import CaptureSucceeded as CaptureSucceeded
from .value_object import Hold as Hold
from .value_object import ProcessorEvent as ProcessorEvent
from .value_object import Refunded as Refunded
from .value_object import TransactionId as TransactionId
from .value_object import TransferReceipt as TransferReceipt
