# blogdesk/decorators.py

from functools import wraps

from flask import current_app, request
from flask_login import current_user

from blogdesk.errors import Forbidden, Unauthorized


def admin_required(f):
    """
    管理者ロールを持つユーザーだけに許可するデコレータ。
    未ログインは Unauthorized、ロール不足は Forbidden を送出します (応答への変換はエラーハンドラ)。
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            current_app.logger.warning(f"ACCESS_DENIED: anonymous user attempted to access {request.path}.")
            raise Unauthorized()

        admin_role = current_app.config.get('ADMIN_ROLE', 'admin')
        if not current_user.has_role(admin_role):
            current_app.logger.warning(
                f"ACCESS_DENIED: User {current_user.username} attempted to access {request.path} without role '{admin_role}'."
            )
            raise Forbidden('この操作を行う権限がありません。')
        return f(*args, **kwargs)
    return decorated_function
