"""
存储适配器
"""

from petfit.core.storage.adapters.fal_storage import FalStorageAdapter

__all__ = ['FalStorageAdapter']
