# blogdesk/__init__.py

import os
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime

import pytz # datetime.now(pytz.utc) を使用するため
from flask import Flask
from flask_security import SQLAlchemyUserDatastore

import config # config モジュールをインポート

from blogdesk.extensions import db, migrate, csrf, security
from blogdesk.utils import render_markdown

# Flask-Security-Too のロガーのレベルを揃える
logging.getLogger('flask_security').setLevel(logging.INFO)


def configure_logging(app):
    """ファイル (ローテーション) と標準出力へのログ出力を設定します。"""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    formatter = logging.Formatter('%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    # create_app を複数回呼ぶ場合 (テストなど) に出力が重複しないよう、既存のハンドラーを外す
    for handler in list(app.logger.handlers):
        app.logger.removeHandler(handler)
        handler.close()

    if app.config.get('LOG_TO_FILE'):
        log_dir = app.config['LOG_DIR']
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, app.config.get('LOG_FILE', 'blogdesk.log')), maxBytes=10240, backupCount=10
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)

    # stdout へのロギング設定 (Gunicorn などでコンソール出力を見るため)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(level)
    app.logger.addHandler(stream_handler)
    # app.logger は "blogdesk" ロガーなので、blogdesk.* の各モジュールのログもここに出力される
    app.logger.setLevel(level)


# アプリケーションファクトリ関数
def create_app(config_class=config.Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///') and not app.config.get('TESTING'):
        os.makedirs(os.path.join(config.BASE_DIR, 'instance'), exist_ok=True)

    configure_logging(app)

    # 拡張機能の初期化
    # エンジン(コネクションプール)はここでアプリごとに作成され、リクエストごとのセッションは
    # リクエスト終了時に必ず破棄されます (Flask-SQLAlchemy の teardown)。
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    from blogdesk.models import User, Role
    security.init_app(app, datastore=SQLAlchemyUserDatastore(db, User, Role))

    # コンテキストプロセッサ: 全てのテンプレートで 'current_year' と 'viewer' を利用可能にする
    from blogdesk.visibility import current_viewer

    @app.context_processor
    def inject_globals():
        return dict(current_year=datetime.now(pytz.utc).year, viewer=current_viewer())

    # MarkdownをHTMLに変換するJinja2フィルターを登録
    app.jinja_env.filters['markdown'] = render_markdown

    # 各種ブループリントの登録
    from blogdesk.routes.home import home_bp
    from blogdesk.routes.posts import posts_bp
    from blogdesk.routes.categories import categories_bp
    from blogdesk.routes.tags import tags_bp
    from blogdesk.dashboard import bp as dashboard_bp

    app.register_blueprint(home_bp)
    app.register_blueprint(posts_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(tags_bp)
    app.register_blueprint(dashboard_bp)

    # CLI コマンドの登録
    from blogdesk import cli
    app.cli.add_command(cli.blog)

    app.logger.info('BlogDesk startup')
    return app
