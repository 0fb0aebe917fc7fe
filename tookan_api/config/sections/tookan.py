from tookan_api.config.serializable import Serializable


class Tookan(Serializable):
    api_key: str = ""
    base_url: str = "https://api.tookanapp.com/v2"
    request_timeout_seconds: float = 45.0
    detail_timeout_seconds: float = 30.0
