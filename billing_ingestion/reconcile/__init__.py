"""First-seen-wins reconciliation of mapped rows."""

from billing_ingestion.reconcile.reconciler import EntityReconciler

__all__ = ["EntityReconciler"]
