"""
fal.ai 存储适配器
将图片上传到 fal.ai 的 CDN，作为各生成后端共享的素材存储
"""

import uuid
from typing import Any, Optional

import fal_client

from petfit.core.log_messages import log_messages
from petfit.core.log_utils import get_logger
from petfit.core.storage.base_storage import BaseStorage, UploadResult
from petfit.core.storage.exceptions import ConfigurationError, UploadError

logger = get_logger(__name__)

MIME_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


def resolve_upload_location(uploaded: Any) -> Optional[str]:
    """
    从上传响应中取出地址

    fal 的上传接口可能返回字符串，也可能返回带 url 字段的对象。
    """
    if isinstance(uploaded, str):
        url = uploaded
    elif isinstance(uploaded, dict):
        url = uploaded.get("url") or uploaded.get("file_url")
    else:
        url = getattr(uploaded, "url", None)

    if isinstance(url, str) and url.strip():
        return url.strip()
    return None


class FalStorageAdapter(BaseStorage):
    """fal.ai 存储适配器"""

    ADAPTER_NAME = "fal"

    def __init__(self, api_key: str, client: Optional[fal_client.AsyncClient] = None):
        if client is None:
            if not api_key:
                raise ConfigurationError("fal.ai API密钥未配置")
            client = fal_client.AsyncClient(key=api_key)
        self.client = client

    async def upload(
        self,
        data: bytes,
        mime_type: str,
        file_name: Optional[str] = None
    ) -> UploadResult:
        """上传图片字节到 fal.ai 存储"""
        if not data:
            raise UploadError("上传数据为空")

        extension = MIME_EXTENSIONS.get(mime_type, "png")
        file_name = file_name or f"upload_{uuid.uuid4().hex[:8]}.{extension}"

        try:
            uploaded = await self.client.upload(data, content_type=mime_type, file_name=file_name)
        except Exception as e:
            logger.error(
                log_messages.STORAGE_UPLOAD_FAILED,
                exception=e,
                operation="fal_storage_upload",
                file_name=file_name
            )
            raise UploadError(f"fal.ai 文件上传失败: {str(e)}") from e

        url = resolve_upload_location(uploaded)
        if not url:
            raise UploadError(
                "fal.ai 上传未返回可用地址",
                details={"response_preview": str(uploaded)[:200]}
            )

        logger.info(
            log_messages.STORAGE_UPLOAD_SUCCESS,
            operation="fal_storage_upload",
            file_name=file_name,
            size_bytes=len(data),
            url_preview=url[:80]
        )
        return UploadResult(url=url, size=len(data), mime_type=mime_type, file_name=file_name)
