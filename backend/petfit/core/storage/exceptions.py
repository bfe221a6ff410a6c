"""
素材存储异常定义
源图片上传到共享素材存储（fal.ai CDN）时可能出现的异常，
由图片准备器统一转换为生成调度的 UploadError
"""

from typing import Any, Dict, Optional


class StorageError(Exception):
    """
    素材存储基础异常

    fal.ai 上传链路上所有异常的基类，code 用于区分配置问题和上传失败。

    Attributes:
        message: 错误消息
        code: 错误码
        details: 错误详情
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigurationError(StorageError):
    """素材存储未就绪，例如未配置 fal.ai 密钥且没有注入客户端"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="CONFIG_ERROR", details=details)


class UploadError(StorageError):
    """图片字节上传失败，或 fal.ai 未返回可访问的地址"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="UPLOAD_ERROR", details=details)


__all__ = [
    'StorageError',
    'ConfigurationError',
    'UploadError',
]
