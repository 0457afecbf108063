"""
Payroll Kernel

Shared foundation for the payroll journal engine:
- Structured JSON logging with run-scoped context
- Typed exception hierarchy with machine-readable codes
- Pure domain types (journal lines, metadata, allocation entries)
- UK financial-period mapping
"""

__version__ = "0.1.0"
