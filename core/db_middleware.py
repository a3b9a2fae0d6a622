import asyncio

from starlette.middleware.base import BaseHTTPMiddleware
from db.base import db


class DatabaseMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        opened = await asyncio.to_thread(db.connect, True)

        try:
            response = await call_next(request)
            return response
        finally:
            # Leave connections opened elsewhere alone
            if opened and not db.is_closed():
                await asyncio.to_thread(db.close)
