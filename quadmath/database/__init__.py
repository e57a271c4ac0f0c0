"""
Database integration for quadmath.

This module provides the ResponseStore contract and its in-memory and
SQL-backed implementations.
"""

from quadmath.database.store import ResponseStore, InMemoryResponseStore
from quadmath.database.postgres import (
    PostgresConfig, PostgresClient, PostgresManager, SqlResponseStore,
    QuadRow, QuestionRow, PlayerRow, ResponseRow
)
