"""HTTP service for creating, tracking and deleting long-running background tasks."""

__version__ = "1.0.0"