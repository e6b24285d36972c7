"""
Command implementations for the vestal CLI.

Each module corresponds to top-level CLI commands:
- allot:   Update an allotment and read it back
- query:   Read-only lookups (show, info)
"""
