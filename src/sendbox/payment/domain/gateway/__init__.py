from .payment_processor import PaymentProcessor as PaymentProcessor
