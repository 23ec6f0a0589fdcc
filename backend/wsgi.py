# backend/wsgi.py
from purefire import create_app

app = create_app()
