"""
测试配置和fixtures
为所有测试提供共享的配置和fixtures

单元测试不依赖任何外部服务，后端与存储均由 tests/utils/mock_utils.py 中的假实现替代
"""

import base64

import pytest

from tests.utils.mock_utils import FakeRenderAdapter, FakeStorage, FakeVisionAdapter

# 1x1 PNG 图片
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


@pytest.fixture
def png_bytes() -> bytes:
    """原始PNG字节"""
    return PNG_BYTES


@pytest.fixture
def png_data_url() -> str:
    """PNG图片的 data URL"""
    return "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
def fake_storage() -> FakeStorage:
    """固定返回 https://storage.example/abc.png 的存储"""
    return FakeStorage(url="https://storage.example/abc.png")


@pytest.fixture
def render_adapter() -> FakeRenderAdapter:
    """返回标准 images 列表响应的扩散模型后端"""
    return FakeRenderAdapter(responses=[{"images": [{"url": "https://cdn.example/out.png"}]}])


@pytest.fixture
def vision_adapter() -> FakeVisionAdapter:
    """返回优化后提示词的多模态后端"""
    return FakeVisionAdapter(responses=[{"content": "  a corgi in a red raincoat, studio light  "}])


def pytest_configure(config):
    """配置pytest标记"""
    config.addinivalue_line("markers", "unit: 单元测试")
    config.addinivalue_line("markers", "generation: 生成调度测试")
    config.addinivalue_line("markers", "adapters: 后端适配器测试")
    config.addinivalue_line("markers", "storage: 存储相关测试")
    config.addinivalue_line("markers", "api: 接口测试")
    config.addinivalue_line("markers", "logging: 日志相关测试")
    config.addinivalue_line("markers", "imports: 模块导入测试")
