from .hold import Hold as Hold
from .hold import TransferReceipt as TransferReceipt
from .processor_event import CaptureFailed as CaptureFailed
from .processor_event import CaptureSucceeded as CaptureSucceeded
from .processor_event import ProcessorEvent as ProcessorEvent
from .processor_event import Refunded as Refunded
from .transaction_id import TransactionId as TransactionId
