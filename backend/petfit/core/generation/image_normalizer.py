"""
源图片准备
解析用户提交的图片，并按各后端的要求转换为内嵌数据或可访问的URL
"""

import asyncio
import base64
import binascii
import io
from typing import Optional
from urllib.parse import unquote_to_bytes

from PIL import Image, UnidentifiedImageError

from petfit.core.log_messages import log_messages
from petfit.core.log_utils import get_logger
from petfit.core.storage.base_storage import BaseStorage
from petfit.core.storage.exceptions import StorageError
from .base import BaseBackendAdapter
from .exceptions import UploadError, ValidationError
from .models import ImageReference, InlineImage, RemoteImage

logger = get_logger(__name__)

DEFAULT_MIME_TYPE = "image/png"


def detect_mime_type(data: bytes) -> Optional[str]:
    """用Pillow识别图片格式，无法识别时返回None"""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return Image.MIME.get(image.format or "")
    except (UnidentifiedImageError, OSError):
        return None


def parse_data_url(source: str) -> InlineImage:
    """
    解析 data URL 为内嵌图片

    格式: data:[<mime>][;base64],<payload>
    未声明MIME时先用Pillow识别，仍无法识别则按 image/png 处理。
    """
    header, separator, payload = source.partition(",")
    if not separator:
        raise ValidationError("图片 data URL 格式错误：缺少数据部分")

    params = header[len("data:"):].split(";")
    mime_type = params[0].strip().lower()

    try:
        if "base64" in (p.strip().lower() for p in params[1:]):
            data = base64.b64decode("".join(payload.split()), validate=True)
        else:
            data = unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"图片数据解码失败: {str(e)}") from e

    if not data:
        raise ValidationError("图片数据为空")

    if not mime_type:
        mime_type = detect_mime_type(data) or DEFAULT_MIME_TYPE
    elif not mime_type.startswith("image/"):
        raise ValidationError(f"不支持的图片类型: {mime_type}")

    return InlineImage(data=data, mime_type=mime_type)


def parse_image_source(source: Optional[str]) -> ImageReference:
    """
    把用户提交的图片字符串解析为图片引用

    Args:
        source: data URL 或 http(s) 地址

    Returns:
        ImageReference: InlineImage 或 RemoteImage

    Raises:
        ValidationError: 未提供图片或格式无法识别
    """
    if not source or not source.strip():
        raise ValidationError("请先上传宠物照片")

    source = source.strip()
    if source.lower().startswith("data:"):
        return parse_data_url(source)
    if source.lower().startswith(("http://", "https://")):
        return RemoteImage(url=source)

    raise ValidationError("无法识别的图片格式，需要 data URL 或 http(s) 地址")


class ImageNormalizer:
    """按后端要求准备图片

    需要URL的后端收到内嵌图片时，先上传到共享素材存储；
    其余情况原样返回，不发起网络请求。
    """

    def __init__(self, storage: Optional[BaseStorage], timeout: Optional[float] = None):
        self.storage = storage
        self.timeout = timeout

    async def normalize(self, ref: ImageReference, backend: BaseBackendAdapter) -> ImageReference:
        """
        返回后端可以直接使用的图片引用，原引用不会被修改

        Raises:
            UploadError: 上传失败、超时或未返回可用地址
        """
        if not backend.requires_remote_image or isinstance(ref, RemoteImage):
            return ref

        return RemoteImage(url=await self.upload(ref))

    async def upload(self, image: InlineImage) -> str:
        """上传内嵌图片，返回可访问的地址"""
        if self.storage is None:
            raise UploadError("未配置素材存储，无法上传图片")

        logger.info(
            log_messages.IMAGE_UPLOAD_START,
            mime_type=image.mime_type,
            size_bytes=len(image.data)
        )

        try:
            result = await asyncio.wait_for(
                self.storage.upload(image.data, image.mime_type),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            logger.error(log_messages.IMAGE_UPLOAD_FAILED, exception=e, timeout=self.timeout)
            raise UploadError(f"图片上传超时（{self.timeout}秒）") from e
        except StorageError as e:
            logger.error(log_messages.IMAGE_UPLOAD_FAILED, exception=e)
            raise UploadError(f"图片上传失败: {e.message}", details=e.details) from e
        except Exception as e:
            logger.error(log_messages.IMAGE_UPLOAD_FAILED, exception=e)
            raise UploadError(f"图片上传失败: {str(e)}") from e

        url = getattr(result, "url", None)
        if not url:
            raise UploadError("图片上传未返回可用地址")

        logger.info(log_messages.IMAGE_UPLOAD_SUCCESS, url_preview=url[:80])
        return url
