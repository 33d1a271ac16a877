from .transaction import Transaction as Transaction
