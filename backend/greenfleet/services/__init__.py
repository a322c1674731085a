"""Domain services. Tenant data services only ever receive tenant-scoped sessions."""
