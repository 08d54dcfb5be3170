"""Manager Daemon Reconciler (MDR).

One-shot reconciliation of the storage cluster's mgr daemons:
 - per-daemon keyring Secrets (get-or-create)
 - per-daemon Deployments (create-if-absent)
 - the shared metrics Service and the prometheus module
 - the optional dashboard module and its Service

A pass never updates or deletes what it finds, apart from removing the
dashboard Service when the dashboard is disabled. Re-run it to converge.
"""
