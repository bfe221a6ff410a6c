"""
多模态视觉模型适配器
通过OpenAI兼容的对话接口调用视觉理解模型（默认火山引擎方舟）
"""

import base64
from typing import Any, Dict, List, Mapping, Optional

import openai

from petfit.core.log_messages import log_messages
from petfit.core.log_utils import get_logger
from petfit.core.generation.base import BaseBackendAdapter, BackendConfig
from petfit.core.generation.models import (
    BackendId, ImageReference, InlineImage, InvokeOptions
)

logger = get_logger(__name__)


def to_image_content_url(image: ImageReference) -> str:
    """内嵌图片转为 data URL，远程图片直接使用其地址"""
    if isinstance(image, InlineImage):
        encoded = base64.b64encode(image.data).decode("ascii")
        return f"data:{image.mime_type};base64,{encoded}"
    return image.url


class VisionAdapter(BaseBackendAdapter):
    """多模态视觉模型适配器

    接受内嵌图片，返回文本补全。组合路由中，这段文本作为扩散模型的提示词。
    """

    backend_id = BackendId.VISION
    requires_remote_image = False

    DEFAULT_TIMEOUT = 60
    DEFAULT_TEMPERATURE = 0.7
    DEFAULT_MAX_TOKENS = 1024

    def __init__(
        self,
        backend_config: BackendConfig,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        client: Optional[openai.AsyncOpenAI] = None
    ):
        super().__init__(backend_config)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client = client or self._create_client()

    def _create_client(self) -> openai.AsyncOpenAI:
        """创建OpenAI兼容客户端"""
        if not self.backend_config.api_key:
            raise ValueError("多模态模型API密钥未配置")

        base_url = (self.backend_config.base_url or "").strip() or None
        if base_url and not base_url.startswith(('http://', 'https://')):
            base_url = f"https://{base_url}"
            logger.warning(log_messages.BASE_URL_SCHEME_ADDED, base_url=base_url)

        return openai.AsyncOpenAI(
            api_key=self.backend_config.api_key,
            base_url=base_url,
            timeout=self.backend_config.timeout or self.DEFAULT_TIMEOUT,
            max_retries=0
        )

    def _build_messages(self, image: ImageReference, prompt: str) -> List[Dict[str, Any]]:
        return [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": to_image_content_url(image)}},
                ],
            }
        ]

    async def _invoke_internal(
        self,
        image: ImageReference,
        prompt: str,
        options: InvokeOptions
    ) -> Mapping[str, Any]:
        response = await self.client.chat.completions.create(
            model=self.backend_config.model,
            messages=self._build_messages(image, prompt),
            temperature=self.temperature,
            max_tokens=self.max_tokens
        )
        return self._format_response(response)

    def _format_response(self, response) -> Dict[str, Any]:
        """格式化API响应为统一格式"""
        content = None
        if response.choices:
            content = response.choices[0].message.content
        return {
            "content": content,
            "model": response.model,
            "usage": {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens
            } if response.usage else {}
        }

    def extract_text(self, response: Mapping[str, Any]) -> Optional[str]:
        content = response.get("content") if isinstance(response, Mapping) else None
        if isinstance(content, str) and content.strip():
            return content.strip()
        return None
