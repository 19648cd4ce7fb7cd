"""piimask

Token-classification PII detection with text and PDF redaction. See
``piimask.core`` for the composable operations and ``piimask.api`` /
``piimask.cli`` for the service and command-line entrypoints.
"""

__all__ = [
    "core",
    "gateway",
    "merge",
    "labels",
    "redact",
    "document",
    "errors",
    "types",
    "audit",
    "batch",
    "pipeline",
    "api",
    "cli",
    "logging",
    "settings",
    "health",
]

__version__ = "0.1.0"
