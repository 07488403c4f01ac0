"""
Operations Layer - Sans-I/O business logic for CalDAV.

This package contains pure functions that implement the client's
decisions without performing any network I/O.

Architecture:
    ┌─────────────────────────────────────┐
    │  DAVClient                          │
    │  (handles I/O)                      │
    ├─────────────────────────────────────┤
    │  Operations Layer (this package)    │
    │  - path normalization               │
    │  - conditional headers              │
    │  - ref diffing                      │
    ├─────────────────────────────────────┤
    │  Protocol Layer (caldavsync.protocol)│
    │  - XML building and parsing         │
    └─────────────────────────────────────┘

Modules:
    principal_ops: discovery path choice, href normalization
    concurrency_ops: etag handling for create, update and delete
    sync_ops: ctag gating and (href, etag) diffing
"""
from caldavsync.operations.concurrency_ops import create_headers
from caldavsync.operations.concurrency_ops import delete_headers
from caldavsync.operations.concurrency_ops import is_weak
from caldavsync.operations.concurrency_ops import item_href
from caldavsync.operations.concurrency_ops import strip_weak
from caldavsync.operations.concurrency_ops import update_headers
from caldavsync.operations.principal_ops import discovery_path_for
from caldavsync.operations.principal_ops import normalize_path
from caldavsync.operations.sync_ops import diff_refs
from caldavsync.operations.sync_ops import is_unchanged
from caldavsync.operations.sync_ops import RefDiff

__all__ = [
    "create_headers",
    "delete_headers",
    "diff_refs",
    "discovery_path_for",
    "is_unchanged",
    "is_weak",
    "item_href",
    "normalize_path",
    "RefDiff",
    "strip_weak",
    "update_headers",
]
