# config.py
import os

# BASE_DIR はプロジェクトのルートディレクトリを指します
BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    # アプリケーションのセキュリティキー (セッション管理などに使用)
    # 本番環境では必ず環境変数 SECRET_KEY を設定してください。
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-blogdesk-secret')

    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', '0') == '1'

    # Flask-Security-Too の認証関連設定
    SECURITY_PASSWORD_SALT = os.environ.get('SECURITY_PASSWORD_SALT', 'dev-blogdesk-salt')
    SECURITY_PASSWORD_HASH = os.environ.get('SECURITY_PASSWORD_HASH', 'pbkdf2_sha512')
    SECURITY_URL_PREFIX = "/security"
    SECURITY_LOGIN_URL = "/login"
    SECURITY_LOGOUT_URL = "/logout"
    SECURITY_POST_LOGIN_VIEW = "/"
    SECURITY_POST_LOGOUT_VIEW = "/"
    SECURITY_FLASH_MESSAGES = True

    # 管理者として扱うロール名 (非公開記事・未承認コメントをすべて閲覧できる)
    ADMIN_ROLE = os.environ.get('ADMIN_ROLE', 'admin')

    # データベースのURI設定
    # 未設定の場合は 'instance' フォルダ内の SQLite ファイルを使用します
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        'sqlite:///' + os.path.join(BASE_DIR, 'instance', 'blogdesk.db'),
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # コネクションプールの設定 (切断された接続を貸し出さないように pre_ping を有効化)
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': int(os.environ.get('DB_POOL_RECYCLE', 1800)),
    }

    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'

    # 1ページあたりの記事数
    POSTS_PER_PAGE = int(os.environ.get('POSTS_PER_PAGE', 10))

    # Markdown レンダリングで使用する拡張機能
    MARKDOWN_EXTENSIONS = [
        'fenced_code',
        'tables',
        'nl2br',
        'sane_lists',
        'codehilite',
        'extra',
    ]

    # --- ロギング設定 ---
    LOG_TO_FILE = os.environ.get('LOG_TO_FILE', '1') == '1'
    LOG_DIR = os.environ.get('LOG_DIR', os.path.join(BASE_DIR, 'logs'))
    LOG_FILE = 'blogdesk.log'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    # テスト中はCSRFを無効にする
    WTF_CSRF_ENABLED = False
    LOG_TO_FILE = False
    LOG_LEVEL = 'WARNING'
