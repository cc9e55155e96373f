"""Selectors for the billing kernel (read side)."""

from billing_kernel.selectors.report_selector import (
    CustomerPaidTotal,
    DashboardSummary,
    NamedTotal,
    PendingInvoice,
    PlatformTransaction,
    PlatformTransactions,
    ReportSelector,
)

__all__ = [
    "CustomerPaidTotal",
    "DashboardSummary",
    "NamedTotal",
    "PendingInvoice",
    "PlatformTransaction",
    "PlatformTransactions",
    "ReportSelector",
]
