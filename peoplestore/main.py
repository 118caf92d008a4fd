import os
from pathlib import Path
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from .routes import router
from .errors import StorageError
from .models import Database
import logging
from pythonjsonlogger import jsonlogger

# setup structured logging
logger = logging.getLogger('peoplestore')
handler = logging.StreamHandler()
formatter = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s')
handler.setFormatter(formatter)
logger.addHandler(handler)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO').upper())

app = FastAPI(title="PeopleStore API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

IMAGES_DIR = os.getenv("IMAGES_DIR") or str(Path(__file__).resolve().parent / "static" / "images")

app.include_router(router, prefix="/api")
# default avatars live under avatars/1.png .. avatars/20.png
app.mount("/api/images", StaticFiles(directory=IMAGES_DIR), name="images")

@app.get('/healthz')
async def healthz():
    return {'status': 'ok'}

@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    return JSONResponse(status_code=exc.status_code, content={'message': exc.message})

@app.middleware('http')
async def log_requests(request: Request, call_next):
    logger.info({'msg':'request_start','method':request.method,'path':request.url.path})
    response = await call_next(request)
    logger.info({'msg':'request_end','status': response.status_code})
    return response

@app.on_event("startup")
async def startup():
    # engine creation is lazy; the first request opens the first connection
    app.state.db = Database()
    logger.info({'msg': 'database_configured', 'url': app.state.db.engine.url.render_as_string(hide_password=True)})

@app.on_event("shutdown")
async def shutdown():
    db = getattr(app.state, 'db', None)
    if db is not None:
        await db.dispose()
