"""
试衣生成模块
提供生成调度、图片准备、提示词构建、后端适配和响应解析
"""

# 核心类
from .base import BaseBackendAdapter, BackendConfig, classify_backend_exception
from .dispatcher import GenerationDispatcher
from .extractor import ResponseExtractor, ExtractionRule, extract_url
from .factory import BackendAdapterFactory
from .image_normalizer import ImageNormalizer, parse_image_source
from .prompt_builder import build_prompt

# 数据模型与异常
from .models import (
    BackendId,
    BackendRoute,
    DispatchState,
    GenerationRequest,
    GenerationResult,
    ImageReference,
    InlineImage,
    InvokeOptions,
    PromptMode,
    RemoteImage,
    RouteStage,
)
from .exceptions import (
    ErrorKind,
    GenerationError,
    ValidationError,
    UploadError,
    BackendUnavailableError,
    EmptyResultError,
    UnknownBackendError,
)

# 注册功能
from .registry import register_all_adapters, build_routes

register_all_adapters()

__all__ = [
    "BaseBackendAdapter",
    "BackendConfig",
    "classify_backend_exception",
    "GenerationDispatcher",
    "ResponseExtractor",
    "ExtractionRule",
    "extract_url",
    "BackendAdapterFactory",
    "ImageNormalizer",
    "parse_image_source",
    "build_prompt",
    "BackendId",
    "BackendRoute",
    "DispatchState",
    "GenerationRequest",
    "GenerationResult",
    "ImageReference",
    "InlineImage",
    "InvokeOptions",
    "PromptMode",
    "RemoteImage",
    "RouteStage",
    "ErrorKind",
    "GenerationError",
    "ValidationError",
    "UploadError",
    "BackendUnavailableError",
    "EmptyResultError",
    "UnknownBackendError",
    "register_all_adapters",
    "build_routes",
]
