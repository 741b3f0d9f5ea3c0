# backend/wsgi.py
from herbtrade import create_app

app = create_app()
