from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.routers import contact

app = FastAPI(title="Contact mail relay")

app.include_router(contact.router)
app.add_exception_handler(StarletteHTTPException, contact.method_not_allowed_handler)
