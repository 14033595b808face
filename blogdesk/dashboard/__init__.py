# blogdesk/dashboard/__init__.py

from flask import Blueprint

# ブループリントインスタンスを作成 (管理者専用)
bp = Blueprint('dashboard', __name__, url_prefix='/dashboard')

# このインポートは、bpが定義された後に行う必要があります。
from . import routes, api
