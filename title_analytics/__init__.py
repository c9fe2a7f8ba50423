"""
Title Analytics

Read-only analytical queries over a flat table of streaming title metadata:
- CSV ingestion with malformed-row accounting
- DuckDB (in-memory or on disk) as the query engine
- A fixed menu of reporting queries, available from Python and the CLI
"""

__version__ = "0.1.0"
