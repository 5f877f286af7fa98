# backend/wsgi.py
# FLASK_APP=wsgi.py flask run / flask db upgrade / flask store ...
from storekeeper import create_app

app = create_app()
