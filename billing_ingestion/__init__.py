"""
billing_ingestion -- Load a billing CSV export into the relational store.

Reads rows, maps bilingual column labels into customer, invoice and
transaction partials, reconciles duplicates first-seen-wins, and inserts
everything in dependency order inside one transaction.

Architecture:
    billing_ingestion/ is a top-level package above billing_kernel.  Nothing
    in billing_kernel imports from ingestion.
"""
