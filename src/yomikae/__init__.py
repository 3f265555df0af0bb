"""
yomikae: 法令の読み替え規定の抽出
"""

__version__ = "0.1.0"
