"""Ports: protocols implemented by gateways."""
