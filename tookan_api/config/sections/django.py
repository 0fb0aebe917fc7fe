from tookan_api.config.serializable import Serializable


class Django(Serializable):
    secret_key: str = ""
    db_engine: str = "django.db.backends.sqlite3"
    db_name: str = "tookan_sync.sqlite3"
    db_host: str = ""
    db_port: str = ""
    db_user: str = ""
    db_password: str = ""
