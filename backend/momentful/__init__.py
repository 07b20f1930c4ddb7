"""Momentful backend: generation provider glue, job polling and signed storage URLs."""

__version__ = "0.1.0"
