"""Typer command line interface for Stackport."""
