import uvicorn

from .settings import Settings

if __name__ == "__main__":
    settings = Settings()
    uvicorn.run("ttn_webhook.main:app", host=settings.host, port=settings.port)
