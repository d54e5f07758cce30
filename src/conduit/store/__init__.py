"""Relational store enforcing the Conduit referential-integrity contract."""

from conduit.store.graph import DependencyGraph, Reference
from conduit.store.integrity import DanglingReference, count_rows, find_dangling_references
from conduit.store.store import CascadeReport, RelationalStore

__all__ = [
    "CascadeReport",
    "DanglingReference",
    "DependencyGraph",
    "Reference",
    "RelationalStore",
    "count_rows",
    "find_dangling_references",
]
