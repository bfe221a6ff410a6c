"""
生成后端注册与路由
注册所有适配器，并根据配置为每个后端标识构建生成路由
"""

from typing import Dict

from petfit.core.config import Settings
from petfit.core.log_messages import log_messages
from petfit.core.log_utils import get_logger
from .base import BackendConfig
from .factory import BackendAdapterFactory
from .models import BackendId, BackendRoute, InvokeOptions, PromptMode, RouteStage

logger = get_logger(__name__)


def register_all_adapters():
    """注册所有生成后端适配器

    这个函数应该在进程启动时被调用一次，导入 petfit.core.generation 时已自动完成
    """
    from .providers.vision import VisionAdapter
    from .providers.render import RenderAdapter
    from .providers.seedream import SeedreamAdapter

    adapters = [VisionAdapter, RenderAdapter, SeedreamAdapter]
    for adapter_class in adapters:
        BackendAdapterFactory.register_adapter(adapter_class)

    logger.info(
        log_messages.ADAPTERS_REGISTERED,
        operation="register_all_adapters",
        adapter_count=len(adapters)
    )


def _render_options(settings: Settings, strength: float) -> InvokeOptions:
    return InvokeOptions(
        strength=strength,
        num_inference_steps=settings.render_num_inference_steps,
        guidance_scale=settings.render_guidance_scale,
        image_size=settings.render_image_size
    )


def build_routes(settings: Settings) -> Dict[BackendId, BackendRoute]:
    """
    根据配置构建所有可用的生成路由

    未配置密钥的后端不会出现在路由表中，请求它们会得到 UnknownBackendError。

    - render: 直接提示词 + 扩散模型
    - vision: 多模态模型改写提示词后交给扩散模型，重绘强度更低以保留原图
    - seedream: 中文直接提示词 + 方舟 Seedream

    Args:
        settings: 应用配置

    Returns:
        Dict[BackendId, BackendRoute]: 后端标识到路由的映射
    """
    routes: Dict[BackendId, BackendRoute] = {}

    render_adapter = None
    if settings.render_enabled:
        render_adapter = BackendAdapterFactory.create_adapter(
            BackendId.RENDER,
            BackendConfig(
                api_key=settings.render_api_key,
                model=settings.render_model,
                timeout=settings.generation_timeout
            )
        )
        routes[BackendId.RENDER] = BackendRoute(
            backend=BackendId.RENDER,
            stages=[
                RouteStage(
                    adapter=render_adapter,
                    prompt_mode=PromptMode.DIRECT,
                    options=_render_options(settings, settings.render_strength)
                )
            ]
        )

    if settings.vision_enabled and render_adapter is not None:
        vision_adapter = BackendAdapterFactory.create_adapter(
            BackendId.VISION,
            BackendConfig(
                api_key=settings.vision_api_key,
                model=settings.vision_model,
                base_url=settings.vision_base_url,
                timeout=settings.generation_timeout
            ),
            temperature=settings.vision_temperature,
            max_tokens=settings.vision_max_tokens
        )
        routes[BackendId.VISION] = BackendRoute(
            backend=BackendId.VISION,
            stages=[
                RouteStage(adapter=vision_adapter, prompt_mode=PromptMode.ANALYSIS),
                RouteStage(
                    adapter=render_adapter,
                    options=_render_options(settings, settings.render_composed_strength)
                ),
            ]
        )

    if settings.seedream_enabled:
        seedream_adapter = BackendAdapterFactory.create_adapter(
            BackendId.SEEDREAM,
            BackendConfig(
                api_key=settings.seedream_api_key,
                model=settings.seedream_model,
                base_url=settings.seedream_base_url,
                timeout=settings.generation_timeout
            ),
            size=settings.seedream_size
        )
        routes[BackendId.SEEDREAM] = BackendRoute(
            backend=BackendId.SEEDREAM,
            stages=[
                RouteStage(adapter=seedream_adapter, prompt_mode=PromptMode.DIRECT, prompt_language="zh")
            ]
        )

    logger.info(
        log_messages.ROUTES_BUILT,
        operation="build_routes",
        backends=[backend.value for backend in routes]
    )
    return routes
