# backend/wsgi.py
from quark import create_app

app = create_app()
