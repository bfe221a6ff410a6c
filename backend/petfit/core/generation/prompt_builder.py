"""
提示词构建
根据服饰描述和场景风格生成发送给模型的指令
"""

from .models import PromptMode

DIRECT_TEMPLATES = {
    "en": (
        "High-end pet fashion photography, a pet wearing {description}, "
        "{style} background, 8k photorealistic, perfect composition."
    ),
    "zh": "专业宠物摄影。一只宠物正在穿着：{description}。场景设在{style}背景下。写实风格，8k精细画质，构图完美。",
}

ANALYSIS_TEMPLATE = (
    "You are a prompt engineer for an image-to-image diffusion model. "
    "Look carefully at the pet in the supplied photo: note its species, breed, fur colour and markings, "
    "pose and facial features. Then write a single rendering prompt that keeps this exact pet recognisable "
    "while dressing it in {description} and placing it in a {style} background, "
    "photorealistic, 8k, professional pet fashion photography. "
    "Reply with the prompt text only, no explanations, no markdown."
)


def build_prompt(
    description: str,
    style: str,
    mode: PromptMode = PromptMode.DIRECT,
    language: str = "en"
) -> str:
    """
    构建生成提示词

    Args:
        description: 服饰描述，原样嵌入，不做内容校验
        style: 场景风格
        mode: direct 直接用于渲染；analysis 让视觉模型先观察图片再输出改写后的提示词
        language: direct 模式的模板语言，未知语言回退到英文

    Returns:
        str: 提示词
    """
    mode = PromptMode(mode)
    if mode is PromptMode.ANALYSIS:
        return ANALYSIS_TEMPLATE.format(description=description, style=style)

    template = DIRECT_TEMPLATES.get(language, DIRECT_TEMPLATES["en"])
    return template.format(description=description, style=style)
