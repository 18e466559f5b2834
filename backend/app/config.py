import os
import json
import yaml
from typing import Any, Dict, Optional, TypeVar, Generic, cast
from functools import lru_cache
from pydantic import ConfigDict
from pydantic_settings import BaseSettings
from app.exceptions import ConfigurationException

# 型変数の定義
T = TypeVar('T')

class ConfigValue(Generic[T]):
    """設定値を表すクラス。環境変数、設定ファイル、デフォルト値の優先順位を管理する"""

    def __init__(
        self,
        default: T,
        env_var: Optional[str] = None,
        config_path: Optional[str] = None,
        description: str = ""
    ):
        self.default = default
        self.env_var = env_var
        self.config_path = config_path
        self.description = description
        self._value: Optional[T] = None
        self._is_cached = False

    def get_value(self, config_data: Dict[str, Any] = None) -> T:
        """設定値を取得する。キャッシュがある場合はキャッシュから取得する"""
        if self._is_cached:
            return cast(T, self._value)

        # 環境変数から取得
        if self.env_var and self.env_var in os.environ:
            env_value = os.environ[self.env_var]
            self._value = self._convert_value(env_value)
            self._is_cached = True
            return cast(T, self._value)

        # 設定ファイルから取得
        if config_data and self.config_path:
            try:
                # ドット記法でネストした設定値にアクセス
                paths = self.config_path.split('.')
                value = config_data
                for path in paths:
                    value = value[path]
                self._value = self._convert_value(value)
                self._is_cached = True
                return cast(T, self._value)
            except (KeyError, TypeError):
                pass

        self._value = self.default
        self._is_cached = True
        return self.default

    def _convert_value(self, value: Any) -> T:
        """値を適切な型に変換する"""
        if isinstance(self.default, bool) and isinstance(value, str):
            return cast(T, value.lower() == "true")
        elif isinstance(self.default, int) and isinstance(value, str):
            return cast(T, int(value))
        elif isinstance(self.default, float) and isinstance(value, str):
            return cast(T, float(value))
        elif isinstance(self.default, list) and isinstance(value, str):
            return cast(T, value.split(','))
        elif isinstance(self.default, dict) and isinstance(value, str):
            try:
                return cast(T, json.loads(value))
            except json.JSONDecodeError:
                return self.default
        else:
            return cast(T, value)

    def clear_cache(self) -> None:
        """キャッシュをクリアする"""
        self._is_cached = False
        self._value = None


class AppConfig:
    """アプリケーション設定"""
    CORS_ORIGINS = ConfigValue[list](
        default=["http://localhost:3000"],
        env_var="CORS_ORIGINS",
        config_path="app.cors_origins",
        description="CORSで許可するオリジン"
    )


class ImportConfig:
    """テスト結果インポート設定"""
    MAX_FILES = ConfigValue[int](
        default=50,
        env_var="IMPORT_MAX_FILES",
        config_path="import.max_files",
        description="1回のインポートで受け付けるファイル数の上限"
    )
    MAX_FILE_SIZE = ConfigValue[int](
        default=50 * 1024 * 1024,
        env_var="IMPORT_MAX_FILE_SIZE",
        config_path="import.max_file_size",
        description="1ファイルあたりの最大サイズ（バイト）"
    )
    PROGRESS_CASE_INTERVAL = ConfigValue[int](
        default=10,
        env_var="IMPORT_PROGRESS_CASE_INTERVAL",
        config_path="import.progress_case_interval",
        description="進捗イベントを送信するテストケース間隔"
    )
    AUTOMATION_SCOPE = ConfigValue[str](
        default="automation",
        env_var="IMPORT_AUTOMATION_SCOPE",
        config_path="import.automation_scope",
        description="自動テスト結果に使用するステータススコープ名"
    )
    DEFAULT_FOLDER_NAME = ConfigValue[str](
        default="{format} Imports",
        env_var="IMPORT_DEFAULT_FOLDER_NAME",
        config_path="import.default_folder_name",
        description="スイート名からフォルダを作れない場合の取り込み先フォルダ名（{format}は形式名）"
    )
    AUDIT_ASYNC = ConfigValue[bool](
        default=True,
        env_var="AUDIT_ASYNC",
        config_path="import.audit_async",
        description="監査ログをCeleryタスク経由で書き込むかどうか"
    )


class Config:
    """設定クラス"""
    def __init__(self, config_file: Optional[str] = None):
        self.config_file = config_file
        self.config_data: Dict[str, Any] = {}
        self._load_config_file()

        # 設定カテゴリの初期化
        self.app = AppConfig()
        self.imports = ImportConfig()

    def _categories(self):
        return [
            ('app', self.app),
            ('import', self.imports),
        ]

    def _load_config_file(self) -> None:
        """設定ファイルを読み込む"""
        if not self.config_file:
            self.config_file = os.environ.get("CONFIG_FILE", "config.yaml")

        if os.path.exists(self.config_file):
            try:
                with open(self.config_file, 'r') as f:
                    if self.config_file.endswith(('.yaml', '.yml')):
                        self.config_data = yaml.safe_load(f) or {}
                    elif self.config_file.endswith('.json'):
                        self.config_data = json.load(f)
            except Exception as e:
                print(f"設定ファイルの読み込みに失敗しました: {e}")

    def get(self, category: str, name: str) -> Any:
        """カテゴリ名と設定名から値を取得する"""
        for category_name, category_obj in self._categories():
            if category_name == category:
                attr = getattr(category_obj, name.upper(), None)
                if isinstance(attr, ConfigValue):
                    return attr.get_value(self.config_data)
        raise ConfigurationException(
            f"Unknown config value: {category}.{name}",
            details={"category": category, "name": name},
        )

    def clear_cache(self) -> None:
        """すべての設定値のキャッシュをクリアする"""
        for _, category in self._categories():
            for attr_name in dir(category):
                if not attr_name.startswith('_'):
                    attr = getattr(category, attr_name)
                    if isinstance(attr, ConfigValue):
                        attr.clear_cache()


# 接続先などプロセス起動時に決まる設定
class Settings(BaseSettings):
    # アプリケーション設定
    APP_NAME: str = "Resultforge"
    DEBUG: bool = os.environ.get("DEBUG", "False").lower() == "true"

    # Redis設定
    REDIS_URL: str = os.environ.get("REDIS_URL", "redis://redis:6379/0")

    # データベース設定
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "postgresql://resultforge:resultforge@db:5432/resultforge")

    model_config = ConfigDict(env_file=".env", extra="ignore")


@lru_cache()
def get_config() -> Config:
    """設定のシングルトンインスタンスを取得する"""
    return Config()


settings = Settings()

config = get_config()
