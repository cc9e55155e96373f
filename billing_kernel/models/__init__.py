"""ORM models for the six billing tables."""

from billing_kernel.models.customer import Customer
from billing_kernel.models.invoice import Invoice
from billing_kernel.models.reference import Platform, State
from billing_kernel.models.transaction import Transaction, TransactionPlatform

__all__ = [
    "Customer",
    "Invoice",
    "Platform",
    "State",
    "Transaction",
    "TransactionPlatform",
]
