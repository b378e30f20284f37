"""
Certificate Kernel

Lifecycle rules for certificate records:
- Configurable statuses with edit and terminal flags
- Status-transition validation (required fields, confirmation statements)
- Single-record mutation with field-level audit diffs
- Append-only audit trail
"""

__version__ = "0.1.0"
