"""
Object storage service - upload files to R2 and serve them by public URL.

This package contains the complete application:
- core: Framework-agnostic gateway, key generation and result models
- infrastructure: R2 and in-memory bucket implementations
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
