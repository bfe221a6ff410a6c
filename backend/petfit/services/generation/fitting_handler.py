"""
试衣生成业务处理器
把生成调度的归一化错误转换为HTTP错误
"""

from functools import lru_cache
from typing import Dict, Any, List

from fastapi import HTTPException, status

from petfit.core.config import settings
from petfit.core.generation import ErrorKind, GenerationDispatcher, GenerationError
from petfit.core.log_utils import get_logger
from petfit.schemas.fitting import FittingGenerationRequest

logger = get_logger(__name__)

ERROR_STATUS_CODES = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNKNOWN_BACKEND: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UPLOAD: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.EMPTY_RESULT: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.BACKEND_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@lru_cache()
def get_dispatcher() -> GenerationDispatcher:
    """获取全局生成调度器（凭据来自应用配置）"""
    return GenerationDispatcher.from_settings(settings)


class FittingGenerationHandler:
    """试衣生成业务处理器"""

    def __init__(self, dispatcher: GenerationDispatcher):
        self.dispatcher = dispatcher

    async def handle_generate(self, request: FittingGenerationRequest) -> Dict[str, Any]:
        """
        处理试衣生成请求

        Args:
            request: 生成请求

        Returns:
            Dict[str, Any]: 包含 output_url 和 backend 的结果

        Raises:
            HTTPException: 生成失败时抛出，detail 为 {kind, message}
        """
        logger.info(
            "处理试衣生成请求",
            backend=request.backend,
            description_preview=request.description[:100],
            style=request.style
        )

        try:
            output_url = await self.dispatcher.generate(
                backend=request.backend,
                source_image=request.source_image,
                description=request.description,
                style=request.style
            )
        except GenerationError as e:
            raise HTTPException(
                status_code=ERROR_STATUS_CODES.get(e.kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
                detail=e.to_dict()
            )

        return {"output_url": output_url, "backend": request.backend}

    def handle_list_backends(self) -> List[str]:
        """列出已配置的生成后端"""
        return [backend.value for backend in self.dispatcher.available_backends]
