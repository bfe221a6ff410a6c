"""
日志消息模板模块
统一管理所有业务日志消息模板，便于维护和国际化
"""

from typing import Dict, Any


class LogMessages:
    """日志消息模板类"""

    # ==================== 通用日志消息 ====================
    START_OPERATION = "开始执行操作: {operation_name}"
    OPERATION_SUCCESS = "操作成功完成: {operation_name}"

    # ==================== 生成调度相关 ====================
    DISPATCH_STATE_CHANGED = "生成调度状态变更: {state}"
    DISPATCH_SUCCESS = "试衣图片生成成功"
    DISPATCH_FAILED = "试衣图片生成失败"

    # ==================== 图片准备相关 ====================
    IMAGE_UPLOAD_START = "开始上传源图片"
    IMAGE_UPLOAD_SUCCESS = "源图片上传成功"
    IMAGE_UPLOAD_FAILED = "源图片上传失败"

    # ==================== 后端调用相关 ====================
    BACKEND_INVOKE_START = "开始调用生成后端: {backend}"
    BACKEND_INVOKE_SUCCESS = "生成后端调用成功: {backend}"
    BACKEND_INVOKE_FAILED = "生成后端调用失败: {backend}"
    PROMPT_REFINED = "使用改写后的提示词: {backend}"
    BASE_URL_SCHEME_ADDED = "base_url缺少协议前缀，已自动添加https://"

    # ==================== 后端注册相关 ====================
    ADAPTER_REGISTERED = "注册生成后端适配器: {backend}"
    ADAPTER_OVERWRITTEN = "适配器已存在，将被覆盖: {backend}"
    ADAPTERS_REGISTERED = "已注册所有生成后端适配器"
    ROUTES_BUILT = "生成路由构建完成"

    # ==================== 响应解析相关 ====================
    EXTRACTION_RULE_FAILED = "提取规则执行异常，继续尝试下一条: {rule}"
    EXTRACTION_SUCCESS = "响应URL提取成功: {rule}"

    # ==================== 素材存储相关 ====================
    STORAGE_UPLOAD_SUCCESS = "fal.ai 文件上传成功"
    STORAGE_UPLOAD_FAILED = "fal.ai 文件上传失败"

    @classmethod
    def format_message(cls, message_template: str, **kwargs: Any) -> str:
        """格式化日志消息模板"""
        return message_template.format(**kwargs)

    @classmethod
    def get_structured_data(cls, **kwargs: Any) -> Dict[str, Any]:
        """获取结构化日志数据"""
        return kwargs


# 全局实例
log_messages = LogMessages()
