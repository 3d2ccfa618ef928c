"""Gateways: PostgreSQL-backed implementations of the ports."""
