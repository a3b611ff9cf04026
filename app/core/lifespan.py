import logging
from contextlib import asynccontextmanager

from app.core.config.scoring import get_scoring_config
from app.storage.results_store import close_store, init_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    get_scoring_config()
    init_store()
    logger.info("skill_engine_started")
    yield
    close_store()
