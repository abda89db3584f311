import logging

from app.pvz_api.api.factory import create_app
from app.pvz_api.settings import Settings

config = Settings()

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)

app = create_app(config)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HTTP_HOST, port=config.HTTP_PORT)
