"""Logoforge Gateway - FastAPI REST API layer.

This package contains the FastAPI application and the Pydantic request and
response models.

Modules
-------
main
    ``create_app()`` factory, route handlers, the module-level ``app`` and
    the ``main()`` CLI entry point.
models
    Pydantic models for API request and response validation.
"""
