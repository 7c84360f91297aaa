"""Composition root."""

from .container import Container, assemble, build_container

__all__ = ["Container", "assemble", "build_container"]
