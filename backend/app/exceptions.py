"""
Resultforgeアプリケーションの例外クラス階層

このモジュールは、アプリケーション全体で使用される例外クラスの階層を定義します。
インポート処理では、致命的なエラー（入力検証・パース失敗）と
局所的に回復可能なエラー（ケース単位・スイート単位・監査ログ）を区別するために使用します。
各例外クラスには適切なエラーコードが割り当てられ、エラーの種類を明確に区別できます。
"""
from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(Enum):
    """エラーコード定義"""
    # 一般的なエラー (1000-1999)
    GENERAL_ERROR = 1000
    CONFIGURATION_ERROR = 1001

    # インポート関連エラー (3000-3999)
    IMPORT_ERROR = 3000
    IMPORT_VALIDATION_ERROR = 3001
    FORMAT_DETECTION_ERROR = 3002
    UNSUPPORTED_FORMAT_ERROR = 3003
    RESULT_PARSE_ERROR = 3004
    STATUS_RESOLUTION_ERROR = 3005

    # データ処理関連エラー (5000-5999)
    DATA_ERROR = 5000
    DATABASE_ERROR = 5001


class ResultforgeException(Exception):
    """Resultforgeの基底例外クラス"""
    def __init__(
        self,
        message: str = "Resultforgeアプリケーションエラーが発生しました",
        error_code: ErrorCode = ErrorCode.GENERAL_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code.name}:{self.error_code.value}] {self.message}"


class ConfigurationException(ResultforgeException):
    """設定エラー"""
    def __init__(
        self,
        message: str = "設定の読み込みまたは検証に失敗しました",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


# インポート関連の例外クラス
class ImportException(ResultforgeException):
    """インポート処理の基底例外クラス"""
    def __init__(
        self,
        message: str = "テスト結果のインポート中にエラーが発生しました",
        error_code: ErrorCode = ErrorCode.IMPORT_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code, details)


class ImportValidationException(ImportException):
    """入力検証エラー（必須項目の欠落、テンプレート未設定、実行タイプ不一致など）"""
    def __init__(
        self,
        message: str = "Missing required fields",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, ErrorCode.IMPORT_VALIDATION_ERROR, details)


class FormatDetectionException(ImportException):
    """ファイル形式の自動判定に失敗した"""
    def __init__(
        self,
        message: str = "Unable to auto-detect file format. Please select the format manually.",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, ErrorCode.FORMAT_DETECTION_ERROR, details)


class UnsupportedFormatException(ImportException):
    """未対応のファイル形式"""
    def __init__(
        self,
        message: str = "Unsupported format",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, ErrorCode.UNSUPPORTED_FORMAT_ERROR, details)


class ResultParseException(ImportException):
    """テスト結果ファイルのパースエラー"""
    def __init__(
        self,
        message: str = "テスト結果ファイルのパースに失敗しました",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, ErrorCode.RESULT_PARSE_ERROR, details)


class StatusResolutionException(ImportException):
    """プロジェクトにステータスが1つも設定されていない"""
    def __init__(
        self,
        message: str = "No status is configured for this project",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, ErrorCode.STATUS_RESOLUTION_ERROR, details)


# データ処理関連の例外クラス
class DataException(ResultforgeException):
    """データ関連の基底例外クラス"""
    def __init__(
        self,
        message: str = "データ処理中にエラーが発生しました",
        error_code: ErrorCode = ErrorCode.DATA_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code, details)


class DatabaseException(DataException):
    """データベースエラー"""
    def __init__(
        self,
        message: str = "データベース操作に失敗しました",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, ErrorCode.DATABASE_ERROR, details)
