"""Operational scripts (run with python -m feedrank_server.scripts.<name>)."""
