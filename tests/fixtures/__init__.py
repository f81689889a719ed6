# tests/fixtures/__init__.py
"""Shared builders for tracesink tests.

Available builders:
- make_span_record: a finished server span with small HTTP attribute set
- make_rich_span_record: adds events, links and an error status
- make_batch: N records with distinct span ids
"""

from tests.fixtures.records import make_batch, make_rich_span_record, make_span_context, make_span_record

__all__ = [
    "make_batch",
    "make_rich_span_record",
    "make_span_context",
    "make_span_record",
]
