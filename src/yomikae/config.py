from pathlib import Path

# Base paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
CACHE_DIR = PROJECT_ROOT / "cache"

# e-Gov API
EGOV_API_BASE_URL = "https://laws.e-gov.go.jp/api/1"
EGOV_API_V2_BASE_URL = "https://laws.e-gov.go.jp/api/2"

# User Agent
USER_AGENT = "yomikae/0.1.0"

# 失敗レコードに載せる抜粋の最大文字数
EXCERPT_MAX_LENGTH = 80

# 条文解析の並列数（1 なら逐次処理）
DEFAULT_WORKERS = 1
