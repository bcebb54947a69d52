from typing import Final

API_TITLE: Final[str] = "SpamSift API"
API_VERSION: Final[str] = "0.1.0"
