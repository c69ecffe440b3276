"""
High-level use cases for the tracker.

Each service module orchestrates repositories to implement the rules the UI
relies on (who may create a project, what a submitted feature looks like,
how a session starts). UI collaborators call these services instead of
mutating repositories directly.
"""
