import logging

from tests.fixtures.app import (  # noqa
    app,
    client,
)
from tests.fixtures.db_connection import (  # noqa
    async_engine,
    async_session,
)
from tests.fixtures.entities import (  # noqa
    user_1,
    user_1_posts,
    user_2,
    user_3,
)


def configure_logging():
    logging.getLogger("aiosqlite").setLevel(logging.INFO)


configure_logging()
