"""
试衣生成相关的Pydantic模型
用于数据验证和序列化
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class FittingGenerationRequest(BaseModel):
    """试衣生成请求模型

    description 和 style 只用于构建提示词，不做内容校验；
    source_image 为空时由调度器返回 ValidationError。
    """
    backend: str = Field(..., description="生成后端：vision / render / seedream")
    source_image: Optional[str] = Field(None, description="宠物照片，data URL 或 http(s) 地址")
    description: str = Field("", description="服饰描述")
    style: Optional[str] = Field(None, description="场景风格，默认 Studio")


class FittingGenerationData(BaseModel):
    """试衣生成结果"""
    output_url: str
    backend: str


class FittingBackendsData(BaseModel):
    """可用后端列表"""
    backends: List[str]


class GenerationErrorDetail(BaseModel):
    """生成失败详情"""
    kind: str
    message: str


class GenerationErrorResponse(BaseModel):
    """生成失败响应"""
    detail: GenerationErrorDetail
