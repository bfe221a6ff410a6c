"""
生成后端适配器基类
定义所有生成后端的统一调用接口
"""

import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Mapping, Optional

import httpx
import openai

from petfit.core.log_messages import log_messages
from petfit.core.log_utils import get_logger
from .exceptions import BackendUnavailableError, GenerationError
from .models import BackendId, ImageReference, InvokeOptions

logger = get_logger(__name__)

AUTH_MARKER_PATTERN = re.compile(r"\b401\b|authentication|unauthorized|invalid api key", re.IGNORECASE)


@dataclass
class BackendConfig:
    """后端连接配置，由 Settings 注入，不允许在代码中写死凭据"""
    api_key: str
    model: str
    base_url: Optional[str] = None
    timeout: Optional[float] = None


def _status_code_of(exception: Exception) -> Optional[int]:
    """尽量从SDK异常中取出HTTP状态码"""
    status_code = getattr(exception, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code
    return None


def classify_backend_exception(exception: Exception, backend: str) -> BackendUnavailableError:
    """
    将SDK抛出的异常统一转换为 BackendUnavailableError

    认证失败（HTTP 401 或消息中带 Authentication）与一般的传输失败分开描述，
    原始消息保留在错误中便于诊断。

    Args:
        exception: 原始异常
        backend: 后端名称

    Returns:
        BackendUnavailableError: 归一化后的错误
    """
    raw_message = str(exception) or type(exception).__name__
    status_code = _status_code_of(exception)
    details: Dict[str, Any] = {
        "backend": backend,
        "exception_type": type(exception).__name__,
    }
    if status_code is not None:
        details["status_code"] = status_code

    # 有状态码时只按状态码判断，消息文本仅在没有状态码时作为依据
    if isinstance(exception, openai.AuthenticationError):
        auth_failed = True
    elif status_code is not None:
        auth_failed = status_code == 401
    else:
        auth_failed = bool(AUTH_MARKER_PATTERN.search(raw_message))

    if auth_failed:
        message = f"{backend} 认证失败，请检查API密钥: {raw_message}"
    elif isinstance(exception, (openai.APIConnectionError, httpx.TransportError)):
        message = f"无法连接到 {backend}: {raw_message}"
    elif isinstance(exception, TimeoutError):
        message = f"{backend} 调用超时"
    elif status_code is not None:
        message = f"{backend} 调用失败 (状态码: {status_code}): {raw_message}"
    else:
        message = f"{backend} 调用失败 ({type(exception).__name__}): {raw_message}"

    return BackendUnavailableError(message, auth_failed=auth_failed, details=details)


class BaseBackendAdapter(ABC):
    """生成后端适配器基类

    子类声明：
    - backend_id: 对应的后端标识
    - requires_remote_image: 是否只接受可通过网络访问的图片URL
    """

    backend_id: ClassVar[BackendId]
    requires_remote_image: ClassVar[bool] = True

    def __init__(self, backend_config: BackendConfig):
        """初始化适配器

        Args:
            backend_config: 后端连接配置
        """
        self.backend_config = backend_config

    async def invoke(
        self,
        image: ImageReference,
        prompt: str,
        options: Optional[InvokeOptions] = None
    ) -> Mapping[str, Any]:
        """
        调用后端（带日志与异常归一化）

        Args:
            image: 已按后端要求准备好的图片
            prompt: 提示词
            options: 调用参数

        Returns:
            后端原始响应（映射结构，形状由后端决定）

        Raises:
            BackendUnavailableError: 认证或传输失败
        """
        options = options or InvokeOptions()
        backend = self.backend_id.value
        start_time = time.time()

        logger.info(
            log_messages.BACKEND_INVOKE_START,
            backend=backend,
            model=self.backend_config.model,
            prompt_length=len(prompt)
        )

        try:
            response = await self._invoke_internal(image, prompt, options)
        except GenerationError:
            raise
        except Exception as e:
            error = classify_backend_exception(e, backend)
            logger.error(
                log_messages.BACKEND_INVOKE_FAILED,
                exception=e,
                backend=backend,
                auth_failed=error.auth_failed,
                execution_time_seconds=round(time.time() - start_time, 3)
            )
            raise error from e

        logger.info(
            log_messages.BACKEND_INVOKE_SUCCESS,
            backend=backend,
            execution_time_seconds=round(time.time() - start_time, 3)
        )
        return response

    @abstractmethod
    async def _invoke_internal(
        self,
        image: ImageReference,
        prompt: str,
        options: InvokeOptions
    ) -> Mapping[str, Any]:
        """实际的后端调用（由子类实现）"""
        ...

    def extract_text(self, response: Mapping[str, Any]) -> Optional[str]:
        """
        从响应中取出文本输出

        只有会产出文本的后端（多模态模型）需要覆盖，
        组合路由中用它把前一阶段的输出作为下一阶段的提示词。
        """
        return None
