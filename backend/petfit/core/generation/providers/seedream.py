"""
火山引擎方舟 Seedream 图片生成适配器
通过OpenAI兼容的图片接口调用，源图片作为参考图传入
"""

from typing import Any, Dict, Mapping, Optional

import openai

from petfit.core.log_messages import log_messages
from petfit.core.log_utils import get_logger
from petfit.core.generation.base import BaseBackendAdapter, BackendConfig
from petfit.core.generation.exceptions import ValidationError
from petfit.core.generation.models import (
    BackendId, ImageReference, InvokeOptions, RemoteImage
)

logger = get_logger(__name__)


class SeedreamAdapter(BaseBackendAdapter):
    """火山引擎方舟 Seedream 适配器"""

    backend_id = BackendId.SEEDREAM
    requires_remote_image = True

    DEFAULT_BASE_URL = "https://ark.cn-beijing.volces.com/api/v3"
    DEFAULT_TIMEOUT = 60
    DEFAULT_SIZE = "1024x1024"

    def __init__(
        self,
        backend_config: BackendConfig,
        size: str = DEFAULT_SIZE,
        client: Optional[openai.AsyncOpenAI] = None
    ):
        super().__init__(backend_config)
        self.size = size
        self.client = client or self._create_client()

    def _create_client(self) -> openai.AsyncOpenAI:
        """创建火山引擎方舟客户端"""
        if not self.backend_config.api_key:
            raise ValueError("火山引擎方舟API密钥未配置")

        base_url = (self.backend_config.base_url or self.DEFAULT_BASE_URL).strip()
        if not base_url.startswith(('http://', 'https://')):
            base_url = f"https://{base_url}"
            logger.warning(log_messages.BASE_URL_SCHEME_ADDED, base_url=base_url)

        return openai.AsyncOpenAI(
            api_key=self.backend_config.api_key,
            base_url=base_url,
            timeout=self.backend_config.timeout or self.DEFAULT_TIMEOUT,
            max_retries=0
        )

    async def _invoke_internal(
        self,
        image: ImageReference,
        prompt: str,
        options: InvokeOptions
    ) -> Mapping[str, Any]:
        if not isinstance(image, RemoteImage):
            raise ValidationError("Seedream 只接受可访问的参考图URL")

        extra_body: Dict[str, Any] = {"image": image.url, "watermark": False}
        response = await self.client.images.generate(
            model=self.backend_config.model,
            prompt=prompt,
            size=options.image_size or self.size,
            response_format="url",
            n=1,
            extra_body=extra_body
        )
        return response.model_dump()
