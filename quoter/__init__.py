"""
quoter - Ledger, command dispatch and the plan quoting engine.

Import the engine from quoter.engine; adapters depend on quoter.ledger, so
this package keeps its own namespace free of imports.
"""
