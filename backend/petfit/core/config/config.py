"""
应用配置管理模块
统一管理所有配置信息，包括环境变量和文件配置
"""

from typing import List, Optional, Union
from pydantic_settings import BaseSettings
from pydantic import field_validator, ConfigDict

from petfit.utils.config_utils import get_workspace_path, get_config_path, parse_json_config


class Settings(BaseSettings):
    """应用配置类 - 统一管理所有配置信息"""

    # ==================== 基础配置 ====================
    app_name: str = "DIQPET Fitting"
    app_version: str = "1.0.0"
    app_debug: bool = True
    app_env: str = "development"

    # ==================== API配置 ====================
    api_v1_str: str = "/api/v1"
    project_name: str = "DIQPET Fitting API"

    # ==================== 日志配置 ====================
    log_dir: str = "log"
    log_level: str = "INFO"
    log_file: str = "backend.log"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # ==================== 应用服务配置 ====================
    app_port: int = 8080
    app_host: str = "0.0.0.0"

    # ==================== 多模态模型配置（vision） ====================
    # 凭据只能通过环境变量或 config/.env 注入
    vision_api_key: str = ""
    vision_base_url: str = "https://ark.cn-beijing.volces.com/api/v3"
    vision_model: str = "doubao-seed-1-6-vision-250815"
    vision_temperature: float = 0.7
    vision_max_tokens: int = 1024

    # ==================== 扩散模型配置（render, fal.ai） ====================
    render_api_key: str = ""
    render_model: str = "fal-ai/flux/dev/image-to-image"
    render_strength: float = 0.65  # 单独使用扩散模型时的重绘强度
    render_composed_strength: float = 0.6  # 多模态改写提示词后的重绘强度，保留更多原图
    render_num_inference_steps: Optional[int] = None
    render_guidance_scale: Optional[float] = None
    render_image_size: Optional[str] = None

    # ==================== Seedream配置（火山引擎方舟） ====================
    seedream_api_key: str = ""
    seedream_base_url: str = "https://ark.cn-beijing.volces.com/api/v3"
    seedream_model: str = "doubao-seedream-4-5-251128"
    seedream_size: str = "1024x1024"

    # ==================== 生成调度配置 ====================
    generation_timeout: float = 180.0  # 单次网络调用超时（秒）
    generation_default_style: str = "Studio"
    generation_error_snippet_length: int = 500

    # ==================== CORS配置 ====================
    cors_origins: Union[str, List[str]] = '["*"]'

    # ==================== 验证器 ====================
    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, value: Union[str, List[str]]) -> List[str]:
        """解析CORS origins配置"""
        if isinstance(value, list):
            return value
        return parse_json_config(value)

    @field_validator("render_strength", "render_composed_strength")
    @classmethod
    def check_strength_range(cls, value: float) -> float:
        """重绘强度必须在 [0, 1] 之间"""
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"重绘强度超出范围 [0, 1]: {value}")
        return value

    # ==================== 计算属性 ====================
    @property
    def workspace_dir(self) -> str:
        """获取workspace目录路径"""
        return str(get_workspace_path())

    @property
    def absolute_log_dir(self) -> str:
        """获取绝对日志目录路径"""
        return str(get_workspace_path(self.log_dir))

    @property
    def vision_enabled(self) -> bool:
        """检查多模态模型是否已配置"""
        return bool(self.vision_api_key)

    @property
    def render_enabled(self) -> bool:
        """检查fal.ai是否已配置"""
        return bool(self.render_api_key)

    @property
    def seedream_enabled(self) -> bool:
        """检查Seedream是否已配置"""
        return bool(self.seedream_api_key)

    model_config = ConfigDict(
        env_file=get_config_path(".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
        validate_default=True
    )


def get_settings() -> Settings:
    """获取应用配置实例"""
    # 环境变量文件加载由外部环境控制（Docker Compose、launch.json等）
    return Settings()


# 全局配置实例
settings = get_settings()
