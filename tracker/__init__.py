"""
Tracker for projects, users and features.

The core is the repository/state layer (``tracker.repositories``); the FastAPI
service in ``tracker.app`` is the remote backend the HTTP repositories talk to.
"""
