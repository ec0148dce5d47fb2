"""
Cashflow Kernel

Shared infrastructure for the recurring-commitment system:
- SQLAlchemy declarative base, engine and transactional session scope
- Injectable clock (no direct ``date.today()`` in domain code)
- Structured JSON logging with request-scoped context
- Typed exception hierarchy with machine-readable codes
"""

__version__ = "0.1.0"
