"""
生成调度异常定义
所有失败都归一为带 kind 的 GenerationError
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """错误类型"""
    VALIDATION = "ValidationError"
    UPLOAD = "UploadError"
    BACKEND_UNAVAILABLE = "BackendUnavailableError"
    EMPTY_RESULT = "EmptyResultError"
    UNKNOWN_BACKEND = "UnknownBackendError"


class GenerationError(Exception):
    """
    生成调度基础异常

    Attributes:
        kind: 错误类型
        message: 可读的错误消息
        details: 错误详情
    """

    kind: ErrorKind = ErrorKind.BACKEND_UNAVAILABLE

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message}


class ValidationError(GenerationError):
    """请求参数无效，例如未提供源图片"""
    kind = ErrorKind.VALIDATION


class UploadError(GenerationError):
    """源图片无法转换为可访问的网络地址"""
    kind = ErrorKind.UPLOAD


class BackendUnavailableError(GenerationError):
    """后端认证失败、网络失败或凭据错误"""
    kind = ErrorKind.BACKEND_UNAVAILABLE

    def __init__(
        self,
        message: str,
        auth_failed: bool = False,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, details=details)
        self.auth_failed = auth_failed


class EmptyResultError(GenerationError):
    """后端调用成功，但响应中找不到输出图片"""
    kind = ErrorKind.EMPTY_RESULT


class UnknownBackendError(GenerationError):
    """请求了未注册的后端"""
    kind = ErrorKind.UNKNOWN_BACKEND


__all__ = [
    'ErrorKind',
    'GenerationError',
    'ValidationError',
    'UploadError',
    'BackendUnavailableError',
    'EmptyResultError',
    'UnknownBackendError',
]
