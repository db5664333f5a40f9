"""
Data access layer.

Design rules:
- Views call ONLY functions in this package (usually through a DataContext).
- Store failures surface as core.exceptions types; opening the hosted store falls back to mock data.
- No env var reads here (config-only).
"""
