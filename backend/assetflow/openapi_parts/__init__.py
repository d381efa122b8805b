"""Pieces for the programmatic OpenAPI builder: registries and path fragments."""

__all__ = [
    "constants",
    "helpers",
    "paths",
]
