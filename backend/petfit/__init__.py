"""
宠物试衣生成后端
"""

__version__ = "1.0.0"
