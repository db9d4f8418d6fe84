"""
Flask extensions, bound to the app in the factory.
"""
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS

# Database
db = SQLAlchemy()

# Cross-origin requests from the UI
cors = CORS()
