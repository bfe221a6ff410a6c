"""
生成后端适配器工厂
负责创建和管理后端适配器实例
"""

from typing import Any, Dict, Type

from petfit.core.log_messages import log_messages
from petfit.core.log_utils import get_logger
from .base import BaseBackendAdapter, BackendConfig
from .exceptions import UnknownBackendError
from .models import BackendId

logger = get_logger(__name__)


class BackendAdapterFactory:
    """生成后端适配器工厂"""

    _adapters: Dict[BackendId, Type[BaseBackendAdapter]] = {}

    @classmethod
    def register_adapter(cls, adapter_class: Type[BaseBackendAdapter]):
        """
        注册适配器

        Args:
            adapter_class: 适配器类，按其 backend_id 注册
        """
        backend_id = adapter_class.backend_id
        if backend_id in cls._adapters:
            logger.warning(log_messages.ADAPTER_OVERWRITTEN, backend=backend_id.value)

        cls._adapters[backend_id] = adapter_class
        logger.debug(log_messages.ADAPTER_REGISTERED, backend=backend_id.value)

    @classmethod
    def create_adapter(cls, backend_id: BackendId, backend_config: BackendConfig, **kwargs: Any) -> BaseBackendAdapter:
        """
        创建适配器实例

        Raises:
            UnknownBackendError: 后端未注册
        """
        adapter_class = cls._adapters.get(backend_id)
        if adapter_class is None:
            raise UnknownBackendError(f"不支持的生成后端: {backend_id}")
        return adapter_class(backend_config, **kwargs)

    @classmethod
    def get_available_adapters(cls) -> Dict[BackendId, Type[BaseBackendAdapter]]:
        """获取所有已注册的适配器"""
        return cls._adapters.copy()
