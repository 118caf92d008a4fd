from fastapi import Request
from .models import Database

def get_db(request: Request) -> Database:
    """The Database the application was started with."""
    return request.app.state.db
