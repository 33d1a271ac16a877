from .transaction_repository import TransactionRepository as TransactionRepository
