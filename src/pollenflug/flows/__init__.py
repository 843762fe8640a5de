"""
Prefect flows for the pollen sync cycle.

Flows:
- sync: fetch the DWD dataset, reconcile region devices, project states

Usage (local):
    python -m pollenflug.flows.sync

Usage (Prefect):
    prefect server start  # Optional, for dashboard
    python -m pollenflug.flows.sync

The long-running scheduler (``pollenflug run``) calls the sync flow once per
cycle, see ``pollenflug.schedule``.
"""
