from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_wtf.csrf import CSRFProtect
from flask_security import Security

# 各拡張機能のインスタンスを生成
# エンジン(コネクションプール)は init_app 時にアプリごとに生成され、アプリと寿命を共にします。
db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()
security = Security()
