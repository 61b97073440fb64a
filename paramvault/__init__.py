"""Versioned configuration and secret store with environment injection.

Stores implement the ``paramvault.store.Store`` protocol; the environment
engine in ``paramvault.environ`` materializes stored values into the
environment of a child process.
"""

__version__ = "0.1.0"
