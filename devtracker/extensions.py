"""
Flask extensions for DevTracker.

- db: Flask-SQLAlchemy session and models (projects, phases, unit types,
  phase units, calculator scenarios, audit log).
- migrate: Flask-Migrate / Alembic schema migrations (`flask db ...`).
- csrf: Flask-WTF CSRFProtect on mutating API calls; clients fetch the
  token from /api/csrf-token.

Bound to the app in create_app() (devtracker/__init__.py).
"""


from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_wtf import CSRFProtect

db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()
