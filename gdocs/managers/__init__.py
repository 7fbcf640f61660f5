"""
Google Docs Operation Managers

This package provides manager classes for multi-step Google Docs operations.
"""

from .batch_operation_manager import BatchOperationManager, BatchUpdateResult, chunk_operations

__all__ = [
    "BatchOperationManager",
    "BatchUpdateResult",
    "chunk_operations",
]
