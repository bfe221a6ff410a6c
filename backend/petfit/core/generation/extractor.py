"""
响应解析
不同后端、不同版本的响应把输出图片放在不同的位置，
按优先级依次尝试规则，直到找到非空的URL
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence

from petfit.core.log_messages import log_messages
from petfit.core.log_utils import get_logger

logger = get_logger(__name__)


def get_field(container: Any, name: str) -> Any:
    """同时支持映射和属性对象的字段读取"""
    if container is None:
        return None
    if isinstance(container, Mapping):
        return container.get(name)
    return getattr(container, name, None)


def as_url(value: Any) -> Optional[str]:
    """值是非空字符串时返回去除空白后的URL"""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def first_item(value: Any) -> Any:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and value:
        return value[0]
    return None


def from_images_list(response: Any) -> Optional[str]:
    """images 列表的第一个元素：字符串或带 url 字段的对象"""
    first = first_item(get_field(response, "images"))
    return as_url(first) or as_url(get_field(first, "url"))


def from_image_field(response: Any) -> Optional[str]:
    """单个 image 字段的 url"""
    return as_url(get_field(get_field(response, "image"), "url"))


def from_nested_data(response: Any) -> Optional[str]:
    """嵌套的 data 容器，对其重新应用 images / image 规则"""
    data = get_field(response, "data")
    if data is None or isinstance(data, (str, bytes, Sequence)):
        return None
    return from_images_list(data) or from_image_field(data)


def from_top_level_url(response: Any) -> Optional[str]:
    """顶层 url 字段"""
    return as_url(get_field(response, "url"))


def from_data_list(response: Any) -> Optional[str]:
    """OpenAI兼容图片接口的 data 列表：data[0].url"""
    return as_url(get_field(first_item(get_field(response, "data")), "url"))


@dataclass(frozen=True)
class ExtractionRule:
    """一条URL提取规则"""
    name: str
    apply: Callable[[Any], Optional[str]]


DEFAULT_RULES: List[ExtractionRule] = [
    ExtractionRule("images_list", from_images_list),
    ExtractionRule("image_field", from_image_field),
    ExtractionRule("nested_data", from_nested_data),
    ExtractionRule("top_level_url", from_top_level_url),
    ExtractionRule("data_list", from_data_list),
]


class ResponseExtractor:
    """按顺序应用提取规则的响应解析器"""

    def __init__(self, rules: Optional[List[ExtractionRule]] = None):
        self.rules = list(rules) if rules is not None else list(DEFAULT_RULES)

    def extract_url(self, response: Any) -> Optional[str]:
        """
        从后端原始响应中提取输出图片URL

        Args:
            response: 后端原始响应，映射或属性对象

        Returns:
            Optional[str]: 第一个命中规则得到的URL，都不匹配时返回None
        """
        for rule in self.rules:
            try:
                url = rule.apply(response)
            except (AttributeError, TypeError, KeyError, IndexError) as e:
                logger.warning(log_messages.EXTRACTION_RULE_FAILED, rule=rule.name, error=str(e))
                continue
            if url:
                logger.debug(log_messages.EXTRACTION_SUCCESS, rule=rule.name)
                return url
        return None


def extract_url(response: Any) -> Optional[str]:
    """使用默认规则提取输出图片URL"""
    return ResponseExtractor().extract_url(response)
