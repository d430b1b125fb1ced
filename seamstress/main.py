from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from seamstress.config import settings
from seamstress.logging_config import configure_logging
from seamstress.routers import orders

configure_logging(settings.log_level)

app = FastAPI(title='Seamstress Order Engine')
app.include_router(orders.router)


@app.get('/healthz', response_class=PlainTextResponse)
def healthz() -> str:
    return 'ok'
