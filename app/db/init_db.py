from sqlmodel import SQLModel
from app.db.session import engine
from app.core.config import settings
from app.models import incident  # noqa: F401


def init_db(drop_all: bool = False, bind=None) -> None:
    bind = bind if bind is not None else engine
    if drop_all:
        SQLModel.metadata.drop_all(bind)
    url = str(bind.url)
    if url.startswith('sqlite') or settings.ENV != 'production' or settings.AUTO_CREATE_TABLES:
        SQLModel.metadata.create_all(bind)
