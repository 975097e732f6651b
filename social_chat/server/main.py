"""FastAPI application entrypoint for the social chat server."""
import uvicorn
from fastapi import FastAPI

from . import auth, friends, messages, users
from .database import Base, engine
from .logging_config import configure_logging

logger = configure_logging()

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Social Chat Server", version="1.0.0")
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(friends.router)
app.include_router(messages.router)


@app.get("/")
def root():
    return {"status": "ok"}


def run() -> None:
    uvicorn.run("social_chat.server.main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    run()
