from mindbridge.db.base import Base
from mindbridge.db.session import engine

# register every table on Base.metadata
from mindbridge.models import user, chat_session, expert_chat_session, assessment  # noqa: F401


def init_db(bind=None) -> None:
    Base.metadata.create_all(bind=bind or engine)


def drop_db(bind=None) -> None:
    Base.metadata.drop_all(bind=bind or engine)
