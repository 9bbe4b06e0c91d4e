"""
ghtree - materialize a subtree of a GitHub repository without cloning it.

Walks the repository object graph through the GitHub GraphQL API and writes
every blob below the requested path to local disk.
"""

__version__ = "0.1.0"
