# run.py

from blogdesk import create_app
from config import Config

# Flaskアプリケーションのインスタンスを作成
app = create_app(Config)

if __name__ == '__main__':
    # '0.0.0.0' は全てのネットワークインターフェースからの接続を受け入れます。
    app.run(host='0.0.0.0', port=int(app.config.get('PORT', 5001)))
