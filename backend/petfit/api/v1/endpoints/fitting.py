"""
试衣生成API端点
采用薄路由、重服务的架构设计
"""

from fastapi import APIRouter, Depends

from petfit.core.generation import GenerationDispatcher
from petfit.core.log_utils import get_logger
from petfit.schemas.common import StandardResponse
from petfit.schemas.fitting import (
    FittingBackendsData, FittingGenerationData, FittingGenerationRequest, GenerationErrorResponse
)
from petfit.services.generation.fitting_handler import FittingGenerationHandler, get_dispatcher

logger = get_logger(__name__)

router = APIRouter(tags=["试衣生成"])

ERROR_RESPONSES = {
    400: {"model": GenerationErrorResponse, "description": "图片无效或后端不支持"},
    502: {"model": GenerationErrorResponse, "description": "图片上传失败或响应中没有图片"},
    503: {"model": GenerationErrorResponse, "description": "生成后端不可用"},
}


@router.post(
    "/generate",
    response_model=StandardResponse,
    summary="生成试衣图片",
    responses=ERROR_RESPONSES,
    description="根据宠物照片、服饰描述和场景风格，调用指定后端生成试衣图片"
)
async def generate_fitting(
    request: FittingGenerationRequest,
    dispatcher: GenerationDispatcher = Depends(get_dispatcher)
) -> StandardResponse:
    """
    生成试衣图片

    功能流程：
    1. 校验源图片
    2. 按后端要求准备图片（必要时上传）
    3. 调用生成后端
    4. 从响应中提取图片URL
    """
    handler = FittingGenerationHandler(dispatcher)
    result = await handler.handle_generate(request)

    return StandardResponse(
        status="success",
        message="试衣图片生成成功",
        data=FittingGenerationData(**result)
    )


@router.get(
    "/backends",
    response_model=StandardResponse,
    summary="获取可用生成后端"
)
async def list_backends(
    dispatcher: GenerationDispatcher = Depends(get_dispatcher)
) -> StandardResponse:
    """获取已配置的生成后端列表"""
    handler = FittingGenerationHandler(dispatcher)
    return StandardResponse(
        status="success",
        message="获取生成后端成功",
        data=FittingBackendsData(backends=handler.handle_list_backends())
    )
