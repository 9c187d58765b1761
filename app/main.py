"""robyn-upload-api - image upload ingestion powered by Robyn."""

from robyn import Robyn

from app.api.health import router as health_router
from app.api.uploads import create_prizes_router, create_scratchcards_router
from app.core.logger import logger
from app.core.router import UPLOAD_ENDPOINTS
from app.core.settings import settings as st
from app.middlewares.base import MiddlewareHandler
from app.middlewares.files import UploadOpenAPIMiddleware
from app.uploads.dispatcher import UploadDispatcher

app = Robyn(__file__)

# Upload limits are fixed for the lifetime of the process
dispatcher = UploadDispatcher(st.upload_config())

# Routers
app.include_router(health_router)
app.include_router(create_scratchcards_router(dispatcher))
app.include_router(create_prizes_router(dispatcher))

# Middlewares
middlewares = MiddlewareHandler(app)
middlewares.register(UploadOpenAPIMiddleware(UPLOAD_ENDPOINTS))


def main() -> None:
    logger.info("🚀 STARTING %s | HOST=%s | PORT=%s", st.API_NAME, st.API_HOST, st.API_PORT)
    app.start(host=st.API_HOST, port=st.API_PORT)


if __name__ == "__main__":
    main()
