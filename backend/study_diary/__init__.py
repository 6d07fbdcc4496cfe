"""Application package for the study diary backend.

This package exposes the store, query, service and model modules used
by the FastAPI application. It is intentionally lightweight; individual
modules contain the concrete implementations and documentation.
"""
