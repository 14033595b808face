# blogdesk/errors.py
"""
アプリケーション全体で使用する例外クラス

ルート層はこれらの例外を捕捉し、status_code に従って HTML または JSON のエラー応答に変換します。
"""


class BlogError(Exception):
    """すべてのアプリケーション例外の基底クラス"""
    status_code = 500

    def __init__(self, message=None):
        super().__init__(message)
        self.message = message or self.__class__.default_message

    default_message = 'サーバーエラーが発生しました。'

    def __str__(self):
        return self.message


class InvalidInput(BlogError):
    """必須項目の欠落や不正な形式の入力 (書き込み前に検出される)"""
    status_code = 400
    default_message = '入力内容が正しくありません。'


class Unauthorized(BlogError):
    """ログインが必要な操作に匿名ユーザーがアクセスした"""
    status_code = 401
    default_message = 'ログインが必要です。'


class Forbidden(BlogError):
    status_code = 403
    default_message = 'アクセス権限がありません。'


class NotFound(BlogError):
    status_code = 404
    default_message = '指定されたデータが見つかりません。'


class Conflict(BlogError):
    """参照が残っているために操作できない。count に阻害している件数を保持します。"""
    status_code = 409
    default_message = '他のデータから参照されているため操作できません。'

    def __init__(self, message=None, count=0):
        super().__init__(message)
        self.count = count


class StorageFailure(BlogError):
    """データベース側の障害。トランザクションは常にロールバック済みです。"""
    status_code = 500
    default_message = 'データベースの処理中にエラーが発生しました。'
