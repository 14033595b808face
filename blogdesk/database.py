# blogdesk/database.py
"""
トランザクション境界とSQLite接続設定をまとめたモジュール
"""

import logging
from contextlib import contextmanager

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from blogdesk.errors import StorageFailure

logger = logging.getLogger(__name__)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite は接続ごとに外部キー制約(ON DELETE CASCADE を含む)を有効化する必要がある
    if type(dbapi_connection).__module__.startswith('sqlite3'):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@contextmanager
def transaction(session, operation):
    """
    複数ステートメントの書き込みを1つのトランザクションで実行します。

    ブロックが正常に終了すればコミット、例外が発生すればロールバックします。
    どちらの場合も接続はプールに返却されます。SQLAlchemyError は
    StorageFailure に変換して送出し、それ以外の例外 (入力エラーなど) はそのまま送出します。
    """
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"{operation} failed, transaction rolled back: {e}", exc_info=True)
        raise StorageFailure(f"{operation} に失敗しました。") from e
    except Exception:
        session.rollback()
        logger.warning(f"{operation} aborted, transaction rolled back.")
        raise
