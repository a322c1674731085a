"""Greenfleet backend: multi-tenant fleet management data-access and authorization layer."""
