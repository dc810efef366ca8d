"""
Contract administration for the IOTA toolkit.
"""
from .migration import MigrationOrchestrator, VersionExtractor
from .resolver import ContractObjectResolver, module_name

__all__ = [
    'ContractObjectResolver',
    'MigrationOrchestrator',
    'VersionExtractor',
    'module_name',
]
