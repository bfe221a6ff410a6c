"""
扩散模型图生图适配器
调用 fal.ai 托管的 Flux image-to-image 服务
"""

from typing import Any, Dict, Mapping, Optional

import fal_client

from petfit.core.log_utils import get_logger
from petfit.core.generation.base import BaseBackendAdapter, BackendConfig
from petfit.core.generation.exceptions import ValidationError
from petfit.core.generation.models import (
    BackendId, ImageReference, InvokeOptions, RemoteImage
)

logger = get_logger(__name__)


class RenderAdapter(BaseBackendAdapter):
    """fal.ai 图生图适配器

    只接受远程图片URL；strength 控制输出可以偏离原图的程度。
    """

    backend_id = BackendId.RENDER
    requires_remote_image = True

    DEFAULT_STRENGTH = 0.65

    def __init__(self, backend_config: BackendConfig, client: Optional[fal_client.AsyncClient] = None):
        super().__init__(backend_config)
        if client is None:
            if not backend_config.api_key:
                raise ValueError("fal.ai API密钥未配置")
            client = fal_client.AsyncClient(key=backend_config.api_key)
        self.client = client

    def _build_arguments(self, image: RemoteImage, prompt: str, options: InvokeOptions) -> Dict[str, Any]:
        strength = options.strength if options.strength is not None else self.DEFAULT_STRENGTH
        arguments: Dict[str, Any] = {
            "image_url": image.url,
            "prompt": prompt,
            "strength": strength,
        }
        if options.num_inference_steps is not None:
            arguments["num_inference_steps"] = options.num_inference_steps
        if options.guidance_scale is not None:
            arguments["guidance_scale"] = options.guidance_scale
        if options.image_size:
            arguments["image_size"] = options.image_size
        return arguments

    async def _invoke_internal(
        self,
        image: ImageReference,
        prompt: str,
        options: InvokeOptions
    ) -> Mapping[str, Any]:
        if not isinstance(image, RemoteImage):
            raise ValidationError("扩散模型只接受可访问的图片URL")

        arguments = self._build_arguments(image, prompt, options)
        logger.debug(
            "调用fal.ai图生图",
            model=self.backend_config.model,
            strength=arguments["strength"]
        )
        return await self.client.subscribe(self.backend_config.model, arguments=arguments)
