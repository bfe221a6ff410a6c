"""
生成调度器
生成流程的公共入口：校验 → 准备图片 → 调用后端 → 提取结果，
所有失败都以一个归一化的 GenerationError 抛给调用方，不做重试
"""

import asyncio
import json
import uuid
from typing import Any, Dict, List, Optional, Union

from petfit.core.config import Settings
from petfit.core.log_messages import log_messages
from petfit.core.log_utils import get_logger
from petfit.core.storage.adapters.fal_storage import FalStorageAdapter
from .base import classify_backend_exception
from .exceptions import (
    BackendUnavailableError, EmptyResultError, GenerationError, UnknownBackendError
)
from .extractor import ResponseExtractor
from .image_normalizer import ImageNormalizer, parse_image_source
from .models import (
    BackendId, BackendRoute, DispatchState, GenerationRequest, GenerationResult,
    ImageReference, InlineImage, RemoteImage, RouteStage
)
from .prompt_builder import build_prompt
from .registry import build_routes

logger = get_logger(__name__)


class GenerationDispatcher:
    """生成调度器

    调度器只持有不可变的路由和客户端，每次调用的状态都是局部的，
    多个请求可以并发调用同一个实例。
    """

    DEFAULT_STYLE = "Studio"
    DEFAULT_SNIPPET_LENGTH = 500

    def __init__(
        self,
        routes: Dict[BackendId, BackendRoute],
        normalizer: ImageNormalizer,
        extractor: Optional[ResponseExtractor] = None,
        timeout: Optional[float] = None,
        default_style: str = DEFAULT_STYLE,
        snippet_length: int = DEFAULT_SNIPPET_LENGTH
    ):
        """
        Args:
            routes: 后端标识到生成路由的映射
            normalizer: 图片准备器
            extractor: 响应解析器，默认使用内置规则
            timeout: 单次后端调用的超时时间（秒），None 表示不限制
            default_style: 未指定风格时使用的场景风格
            snippet_length: 错误信息中原始响应片段的最大长度
        """
        self.routes = dict(routes)
        self.normalizer = normalizer
        self.extractor = extractor or ResponseExtractor()
        self.timeout = timeout
        self.default_style = default_style
        self.snippet_length = snippet_length

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationDispatcher":
        """根据应用配置创建调度器，凭据全部来自配置"""
        storage = FalStorageAdapter(api_key=settings.render_api_key) if settings.render_enabled else None
        return cls(
            routes=build_routes(settings),
            normalizer=ImageNormalizer(storage, timeout=settings.generation_timeout),
            timeout=settings.generation_timeout,
            default_style=settings.generation_default_style,
            snippet_length=settings.generation_error_snippet_length
        )

    @property
    def available_backends(self) -> List[BackendId]:
        return list(self.routes)

    async def generate(
        self,
        backend: Union[BackendId, str],
        source_image: Optional[str],
        description: str,
        style: Optional[str] = None
    ) -> str:
        """
        生成试衣图片

        Args:
            backend: 后端标识，vision / render / seedream
            source_image: data URL 或 http(s) 地址
            description: 服饰描述
            style: 场景风格，默认 Studio

        Returns:
            str: 输出图片URL

        Raises:
            GenerationError: 任何失败，kind 标明错误类型
        """
        result = await self._run(backend, source_image, description, style)
        return result.output_url

    async def dispatch(self, request: GenerationRequest) -> GenerationResult:
        """执行一个已构建的生成请求"""
        return await self._run(request.backend, request.image, request.description, request.style)

    async def _run(
        self,
        backend: Union[BackendId, str],
        source: Union[ImageReference, str, None],
        description: str,
        style: Optional[str]
    ) -> GenerationResult:
        trace_id = uuid.uuid4().hex[:12]
        style = style or self.default_style
        state = self._transition(DispatchState.IDLE, trace_id)

        try:
            state = self._transition(DispatchState.VALIDATING, trace_id)
            image = self._validate_image(source)
            route = self._resolve_route(backend)

            state = self._transition(DispatchState.NORMALIZING, trace_id, backend=route.backend.value)
            prepared = await self._prepare_images(image, route)

            state = self._transition(DispatchState.INVOKING, trace_id, backend=route.backend.value)
            response = await self._invoke_route(route, prepared, description, style)

            state = self._transition(DispatchState.EXTRACTING, trace_id, backend=route.backend.value)
            output_url = self.extractor.extract_url(response)
            if not output_url:
                snippet = self._snippet(response)
                raise EmptyResultError(
                    f"未能从 {route.backend.value} 的响应中提取图片URL: {snippet}",
                    details={"response_snippet": snippet}
                )
        except GenerationError as e:
            self._transition(DispatchState.FAILED, trace_id, failed_at=state.value, kind=e.kind.value)
            logger.error(
                log_messages.DISPATCH_FAILED,
                exception=e,
                trace_id=trace_id,
                kind=e.kind.value,
                failed_at=state.value
            )
            raise

        self._transition(DispatchState.SUCCEEDED, trace_id, backend=route.backend.value)
        logger.info(log_messages.DISPATCH_SUCCESS, trace_id=trace_id, url_preview=output_url[:80])
        return GenerationResult(
            output_url=output_url,
            backend=route.backend,
            metadata={"trace_id": trace_id, "stage_count": len(route.stages), "style": style}
        )

    def _transition(self, state: DispatchState, trace_id: str, **kwargs: Any) -> DispatchState:
        logger.info(log_messages.DISPATCH_STATE_CHANGED, state=state.value, trace_id=trace_id, **kwargs)
        return state

    def _validate_image(self, source: Union[ImageReference, str, None]) -> ImageReference:
        if isinstance(source, (InlineImage, RemoteImage)):
            return source
        return parse_image_source(source)

    def _resolve_route(self, backend: Union[BackendId, str]) -> BackendRoute:
        try:
            backend_id = BackendId(backend)
        except ValueError:
            raise UnknownBackendError(f"不支持的生成后端: {backend}")

        route = self.routes.get(backend_id)
        if route is None:
            raise UnknownBackendError(f"生成后端未配置: {backend_id.value}")
        return route

    async def _prepare_images(self, image: ImageReference, route: BackendRoute) -> List[ImageReference]:
        """在调用任何后端之前准备好每个阶段需要的图片，同一请求最多上传一次"""
        prepared: List[ImageReference] = []
        uploaded: Optional[ImageReference] = None
        for stage in route.stages:
            if stage.adapter.requires_remote_image:
                if uploaded is None:
                    uploaded = await self.normalizer.normalize(image, stage.adapter)
                prepared.append(uploaded)
            else:
                prepared.append(await self.normalizer.normalize(image, stage.adapter))
        return prepared

    async def _invoke_route(
        self,
        route: BackendRoute,
        prepared: List[ImageReference],
        description: str,
        style: str
    ) -> Any:
        """按顺序执行路由的各个阶段，前一阶段的文本作为后一阶段的提示词"""
        first = route.stages[0]
        prompt = build_prompt(description, style, first.prompt_mode, first.prompt_language)

        response: Any = None
        previous: Optional[RouteStage] = None
        for stage, image in zip(route.stages, prepared):
            if previous is not None:
                prompt = previous.adapter.extract_text(response)
                if not prompt:
                    snippet = self._snippet(response)
                    raise EmptyResultError(
                        f"{previous.adapter.backend_id.value} 未返回改写后的提示词: {snippet}",
                        details={"response_snippet": snippet}
                    )
                logger.info(
                    log_messages.PROMPT_REFINED,
                    backend=stage.adapter.backend_id.value,
                    prompt_length=len(prompt)
                )
            response = await self._invoke_stage(stage, image, prompt)
            previous = stage
        return response

    async def _invoke_stage(self, stage: RouteStage, image: ImageReference, prompt: str) -> Any:
        backend = stage.adapter.backend_id.value
        try:
            return await asyncio.wait_for(
                stage.adapter.invoke(image, prompt, stage.options),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise BackendUnavailableError(
                f"{backend} 调用超时（{self.timeout}秒）",
                details={"backend": backend, "timeout": self.timeout}
            ) from e
        except GenerationError:
            raise
        except Exception as e:
            raise classify_backend_exception(e, backend) from e

    def _snippet(self, response: Any) -> str:
        """序列化原始响应并截断，用于诊断"""
        try:
            text = json.dumps(response, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            text = repr(response)
        if len(text) > self.snippet_length:
            return text[:self.snippet_length] + "..."
        return text
