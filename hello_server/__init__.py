"""Hello World HTTP service with mock REST endpoints and health checks."""

__version__ = "1.0.0"
