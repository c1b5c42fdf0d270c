"""
UXOne Workflow Kernel

Core of the UXOne operations platform:
- Gap-free, bucket-scoped identifier generation
- Multi-department sequential approval with optimistic concurrency
- Structured logging and typed errors
"""

__version__ = "0.1.0"
