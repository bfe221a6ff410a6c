"""
存储服务模块
提供统一的存储服务访问接口，目前仅支持 fal.ai 存储
"""

from petfit.core.storage.base_storage import BaseStorage, UploadResult
from petfit.core.storage.adapters.fal_storage import FalStorageAdapter
from petfit.core.storage.exceptions import *


__all__ = [
    'BaseStorage',
    'UploadResult',
    'FalStorageAdapter',
    'StorageError',
    'ConfigurationError',
    'UploadError',
]
