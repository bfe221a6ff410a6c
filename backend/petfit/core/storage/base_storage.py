"""
存储抽象基类
定义统一的存储接口，支持多种存储后端
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class UploadResult:
    """上传结果"""
    url: str
    size: int
    mime_type: str
    file_name: Optional[str] = None


class BaseStorage(ABC):
    """存储抽象基类"""

    @abstractmethod
    async def upload(
        self,
        data: bytes,
        mime_type: str,
        file_name: Optional[str] = None
    ) -> UploadResult:
        """
        上传文件并返回可公开访问的地址

        Args:
            data: 文件数据
            mime_type: MIME类型
            file_name: 可选的文件名

        Returns:
            UploadResult: 上传结果

        Raises:
            StorageError: 上传失败时抛出
        """
        pass
