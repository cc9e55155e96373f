"""
Billing Kernel

Relational core of the billing export loader:
- SQLAlchemy engine, pooled sessions and the commit-or-rollback scope
- ORM models for states, platforms, transactions, invoices and customers
- Typed exceptions and structured JSON logging
- Read-only report selectors
"""

__version__ = "0.1.0"
