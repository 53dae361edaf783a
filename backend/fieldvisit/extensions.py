# Overview: Flask extension instances shared by the app factory, models and CLI.
# The SQLAlchemy engine owns the bounded connection pool; the scoped session
# hands each request its own connection and returns it at teardown.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()
