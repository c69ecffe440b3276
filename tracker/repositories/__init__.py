"""
Persistence adapters and repositories.

Storage backends (JSON file, memory, remote HTTP) sit at the bottom; state
containers own the in-memory collections; repositories are the public
facades the services depend on.
"""
