"""Operator-facing command-line front end."""
