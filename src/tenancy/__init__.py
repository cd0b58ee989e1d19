"""
Tenancy bounded context: shop provisioning, health monitoring, alerting,
backups and batch maintenance over the shared backing store.
"""
