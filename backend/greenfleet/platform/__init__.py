"""Tenant context, action results and result normalization."""
