"""Infra layer utilities (store file persistence)."""

from .storage import StoreFile

__all__ = ["StoreFile"]
