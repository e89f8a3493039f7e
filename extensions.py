from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf import CSRFProtect
from flask_caching import Cache

db = SQLAlchemy()
csrf = CSRFProtect()
migrate = Migrate()
cache = Cache()
login_manager = LoginManager()
login_manager.login_view = "auth_api.api_login"
