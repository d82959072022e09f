"""Resilient remote-call layer: timeout racing, retry with backoff, degradation.

Import from the submodules directly; ``core.error_handler`` depends on
``core.resilience.errors``, so this package must stay import-free.
"""
