"""
试衣生成数据模型
定义生成调度相关的数据结构
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import BaseBackendAdapter


class BackendId(str, Enum):
    """生成后端标识"""
    VISION = "vision"      # 多模态视觉理解模型，与扩散模型组合使用
    RENDER = "render"      # 托管的扩散图生图服务
    SEEDREAM = "seedream"  # 火山引擎方舟 Seedream 图片模型


class PromptMode(str, Enum):
    """提示词模式"""
    DIRECT = "direct"
    ANALYSIS = "analysis"


class DispatchState(str, Enum):
    """生成调度状态"""
    IDLE = "idle"
    VALIDATING = "validating"
    NORMALIZING = "normalizing"
    INVOKING = "invoking"
    EXTRACTING = "extracting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class InlineImage:
    """内嵌图片：图片字节直接随请求发送

    Attributes:
        data: 解码后的图片字节
        mime_type: MIME类型，如 image/png
    """
    data: bytes
    mime_type: str

    def __post_init__(self):
        if not self.data:
            raise ValueError("内嵌图片数据不能为空")
        if not self.mime_type or not self.mime_type.startswith("image/"):
            raise ValueError(f"无效的图片MIME类型: {self.mime_type!r}")

    def __repr__(self) -> str:
        return f"InlineImage(mime_type={self.mime_type!r}, size={len(self.data)})"


@dataclass(frozen=True)
class RemoteImage:
    """远程图片：可通过网络直接获取的图片地址"""
    url: str

    def __post_init__(self):
        if not self.url:
            raise ValueError("远程图片URL不能为空")


ImageReference = Union[InlineImage, RemoteImage]


@dataclass
class GenerationRequest:
    """一次试衣生成请求，每次用户操作新建，不做持久化"""
    backend: BackendId
    image: ImageReference
    description: str
    style: str = "Studio"


@dataclass
class GenerationResult:
    """生成结果

    Attributes:
        output_url: 生成图片的网络地址，成功时不为空
        backend: 实际使用的后端
        metadata: 额外的元数据信息
    """
    output_url: str
    backend: Optional[BackendId] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class InvokeOptions:
    """后端调用参数"""
    strength: Optional[float] = None
    num_inference_steps: Optional[int] = None
    guidance_scale: Optional[float] = None
    image_size: Optional[str] = None


@dataclass
class RouteStage:
    """生成路由中的一个阶段"""
    adapter: "BaseBackendAdapter"
    prompt_mode: PromptMode = PromptMode.DIRECT
    options: InvokeOptions = field(default_factory=InvokeOptions)
    prompt_language: str = "en"


@dataclass
class BackendRoute:
    """后端路由：按顺序执行的阶段列表

    前一阶段的文本输出作为后一阶段的提示词，最后一个阶段的响应用于提取图片URL。
    """
    backend: BackendId
    stages: List[RouteStage]

    @property
    def is_composed(self) -> bool:
        return len(self.stages) > 1
