from contextlib import asynccontextmanager
import logging

from app.core.analysis_sessions import clear_analysis_sessions
from app.services.analysis_client import AnalysisClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    client = AnalysisClient()
    app.state.analysis_client = client
    logger.info("analysis_client_ready endpoint=%s", client.endpoint)
    yield
    clear_analysis_sessions()
    await client.aclose()
