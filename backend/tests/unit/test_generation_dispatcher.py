"""
生成调度器单元测试
使用假的存储和后端验证调度流程、错误归一化以及组合路由
"""

import asyncio

import httpx
import pytest

from petfit.core.generation import (
    BackendId,
    BackendUnavailableError,
    EmptyResultError,
    GenerationDispatcher,
    GenerationError,
    GenerationRequest,
    ImageNormalizer,
    InlineImage,
    RemoteImage,
    UnknownBackendError,
    UploadError,
    ValidationError,
)
from petfit.core.storage.exceptions import UploadError as StorageUploadError
from tests.utils.mock_utils import FakeRenderAdapter, FakeStorage, FakeVisionAdapter, MockBuilder

OUTPUT_URL = "https://cdn.example/out.png"


@pytest.mark.unit
@pytest.mark.generation
class TestRenderRoute:
    """直接渲染路由测试类"""

    @pytest.mark.asyncio
    async def test_generate_success(self, fake_storage, render_adapter, png_data_url, png_bytes):
        """测试内嵌图片上传后调用扩散模型并返回输出URL"""
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render_adapter)

        output_url = await dispatcher.generate("render", png_data_url, "a red raincoat", "Beach")

        assert output_url == OUTPUT_URL

        assert len(fake_storage.calls) == 1
        assert fake_storage.calls[0]["data"] == png_bytes

        assert len(render_adapter.calls) == 1
        call = render_adapter.calls[0]
        assert call["image"] == RemoteImage(url="https://storage.example/abc.png")
        assert "a red raincoat" in call["prompt"]
        assert "Beach background" in call["prompt"]
        assert call["options"].strength == 0.65

    @pytest.mark.asyncio
    async def test_default_style(self, fake_storage, render_adapter, png_data_url):
        """测试未指定风格时使用 Studio"""
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render_adapter)

        await dispatcher.generate(BackendId.RENDER, png_data_url, "a hat")

        assert "Studio background" in render_adapter.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_remote_source_skips_upload(self, fake_storage, render_adapter):
        """测试远程图片不触发上传"""
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render_adapter)

        await dispatcher.generate("render", "https://cdn.example/pet.jpg", "a hat")

        assert fake_storage.calls == []
        assert render_adapter.calls[0]["image"] == RemoteImage(url="https://cdn.example/pet.jpg")

    @pytest.mark.asyncio
    async def test_dispatch_returns_result_with_metadata(self, fake_storage, render_adapter):
        """测试 dispatch 返回带元数据的结果"""
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render_adapter)
        request = GenerationRequest(
            backend=BackendId.RENDER,
            image=InlineImage(data=b"png", mime_type="image/png"),
            description="a scarf"
        )

        result = await dispatcher.dispatch(request)

        assert result.output_url == OUTPUT_URL
        assert result.backend is BackendId.RENDER
        assert result.metadata["stage_count"] == 1
        assert result.metadata["style"] == "Studio"
        assert result.metadata["trace_id"]

    @pytest.mark.asyncio
    async def test_unparseable_response(self, fake_storage, png_data_url):
        """测试响应中没有图片URL时返回 EmptyResultError，并携带原始响应片段"""
        render = FakeRenderAdapter(responses=[{"data": {"foo": 1}}])
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render)

        with pytest.raises(EmptyResultError) as exc_info:
            await dispatcher.generate("render", png_data_url, "a hat")

        error = exc_info.value
        assert error.kind.value == "EmptyResultError"
        assert '"foo": 1' in error.message
        assert error.details["response_snippet"] == '{"data": {"foo": 1}}'

    @pytest.mark.asyncio
    async def test_response_snippet_is_truncated(self, fake_storage, png_data_url):
        """测试原始响应片段被截断"""
        render = FakeRenderAdapter(responses=[{"logs": "x" * 2000}])
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render)
        dispatcher.snippet_length = 50

        with pytest.raises(EmptyResultError) as exc_info:
            await dispatcher.generate("render", png_data_url, "a hat")

        snippet = exc_info.value.details["response_snippet"]
        assert len(snippet) == 53
        assert snippet.endswith("...")


@pytest.mark.unit
@pytest.mark.generation
class TestValidation:
    """请求校验测试类"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("source", ["", None, "   "])
    async def test_missing_image_makes_no_calls(self, fake_storage, render_adapter, vision_adapter, source):
        """测试未提供图片时不发起任何网络调用"""
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render_adapter, vision=vision_adapter)

        with pytest.raises(ValidationError):
            await dispatcher.generate("vision", source, "a hat")

        assert fake_storage.calls == []
        assert render_adapter.calls == []
        assert vision_adapter.calls == []

    @pytest.mark.asyncio
    async def test_unknown_backend(self, fake_storage, render_adapter, png_data_url):
        """测试不支持的后端标识"""
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render_adapter)

        with pytest.raises(UnknownBackendError) as exc_info:
            await dispatcher.generate("midjourney", png_data_url, "a hat")

        assert exc_info.value.kind.value == "UnknownBackendError"
        assert fake_storage.calls == []
        assert render_adapter.calls == []

    @pytest.mark.asyncio
    async def test_unconfigured_backend(self, fake_storage, render_adapter, png_data_url):
        """测试未配置的后端"""
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render_adapter)

        with pytest.raises(UnknownBackendError):
            await dispatcher.generate("seedream", png_data_url, "a hat")

    @pytest.mark.asyncio
    async def test_image_validated_before_backend(self, fake_storage, render_adapter):
        """测试缺少图片和后端无效同时出现时报告 ValidationError"""
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render_adapter)

        with pytest.raises(ValidationError):
            await dispatcher.generate("midjourney", "", "a hat")


@pytest.mark.unit
@pytest.mark.generation
class TestComposedRoute:
    """视觉模型 + 扩散模型组合路由测试类"""

    @pytest.mark.asyncio
    async def test_vision_output_becomes_render_prompt(self, fake_storage, render_adapter, vision_adapter, png_data_url):
        """测试视觉模型输出的提示词原样传给扩散模型，且重绘强度更低"""
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render_adapter, vision=vision_adapter)

        output_url = await dispatcher.generate("vision", png_data_url, "a red raincoat", "Beach")

        assert output_url == OUTPUT_URL

        vision_call = vision_adapter.calls[0]
        assert isinstance(vision_call["image"], InlineImage)
        assert "a red raincoat" in vision_call["prompt"]
        assert "prompt text only" in vision_call["prompt"]

        render_call = render_adapter.calls[0]
        assert render_call["prompt"] == "a corgi in a red raincoat, studio light"
        assert render_call["image"] == RemoteImage(url="https://storage.example/abc.png")
        assert render_call["options"].strength == 0.6

        assert len(fake_storage.calls) == 1

    @pytest.mark.asyncio
    async def test_upload_failure_stops_before_any_backend(self, render_adapter, vision_adapter, png_data_url):
        """测试上传失败时返回 UploadError，且不调用任何后端"""
        storage = FakeStorage(error=StorageUploadError("bucket unavailable"))
        dispatcher = MockBuilder.create_dispatcher(storage, render=render_adapter, vision=vision_adapter)

        with pytest.raises(UploadError):
            await dispatcher.generate("vision", png_data_url, "a hat")

        assert render_adapter.calls == []
        assert vision_adapter.calls == []

    @pytest.mark.asyncio
    async def test_empty_vision_text(self, fake_storage, render_adapter, png_data_url):
        """测试视觉模型未返回文本时不调用扩散模型"""
        vision = FakeVisionAdapter(responses=[{"content": "   "}])
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render_adapter, vision=vision)

        with pytest.raises(EmptyResultError):
            await dispatcher.generate("vision", png_data_url, "a hat")

        assert render_adapter.calls == []

    @pytest.mark.asyncio
    async def test_vision_backend_failure(self, fake_storage, render_adapter, png_data_url):
        """测试视觉模型认证失败"""
        vision = FakeVisionAdapter(error=RuntimeError("Error code: 401 - Authentication failed"))
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render_adapter, vision=vision)

        with pytest.raises(BackendUnavailableError) as exc_info:
            await dispatcher.generate("vision", png_data_url, "a hat")

        assert exc_info.value.auth_failed is True
        assert render_adapter.calls == []


@pytest.mark.unit
@pytest.mark.generation
class TestBackendFailures:
    """后端失败归一化测试类"""

    @pytest.mark.asyncio
    async def test_transport_failure(self, fake_storage, png_data_url):
        """测试网络失败归一化为 BackendUnavailableError"""
        render = FakeRenderAdapter(error=httpx.ConnectError("connection refused"))
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render)

        with pytest.raises(BackendUnavailableError) as exc_info:
            await dispatcher.generate("render", png_data_url, "a hat")

        assert exc_info.value.auth_failed is False
        assert "connection refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_backend_timeout(self, fake_storage, png_data_url):
        """测试后端调用超时"""
        render = FakeRenderAdapter(delay=1)
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render, timeout=0.01)

        with pytest.raises(BackendUnavailableError) as exc_info:
            await dispatcher.generate("render", png_data_url, "a hat")

        assert "超时" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_every_failure_is_generation_error(self, fake_storage, png_data_url):
        """测试所有失败都是 GenerationError 且带有 kind"""
        render = FakeRenderAdapter(error=ValueError("unexpected"))
        dispatcher = MockBuilder.create_dispatcher(fake_storage, render=render)

        with pytest.raises(GenerationError) as exc_info:
            await dispatcher.generate("render", png_data_url, "a hat")

        assert exc_info.value.to_dict()["kind"] == "BackendUnavailableError"


@pytest.mark.unit
@pytest.mark.generation
class TestConcurrency:
    """并发调用测试类"""

    @pytest.mark.asyncio
    async def test_concurrent_requests_are_independent(self, png_data_url):
        """测试同一调度器实例可以并发处理多个请求"""
        storage = FakeStorage()
        render = FakeRenderAdapter(responses=[
            {"images": [{"url": "https://cdn.example/a.png"}]},
            {"images": [{"url": "https://cdn.example/b.png"}]},
        ])
        dispatcher = MockBuilder.create_dispatcher(storage, render=render)

        results = await asyncio.gather(
            dispatcher.generate("render", png_data_url, "a hat"),
            dispatcher.generate("render", png_data_url, "a scarf"),
        )

        assert sorted(results) == ["https://cdn.example/a.png", "https://cdn.example/b.png"]
        assert len(storage.calls) == 2


@pytest.mark.unit
@pytest.mark.generation
class TestFromSettings:
    """从配置创建调度器测试类"""

    def test_no_credentials_means_no_backends(self):
        """测试未配置任何密钥时没有可用后端"""
        from petfit.core.config import Settings

        settings = Settings(_env_file=None, vision_api_key="", render_api_key="", seedream_api_key="")
        dispatcher = GenerationDispatcher.from_settings(settings)

        assert dispatcher.available_backends == []
        assert dispatcher.normalizer.storage is None

    def test_custom_normalizer_is_used(self, fake_storage):
        """测试调度器使用注入的图片准备器"""
        normalizer = ImageNormalizer(fake_storage)
        dispatcher = GenerationDispatcher(routes={}, normalizer=normalizer)

        assert dispatcher.normalizer is normalizer
