# backend/wsgi.py
from autoshop import create_app

app = create_app()
