"""FastAPI application factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from depdelta import __version__
from depdelta.models import ViewerConfig
from depdelta.source import ChangelogSource, JsonChangelogSource
from depdelta.web.api import router
from depdelta.web.api_graph import router as graph_router
from depdelta.web.state import state

logger = logging.getLogger(__name__)


def create_app(
    source: ChangelogSource | None = None,
    config: ViewerConfig | None = None,
) -> FastAPI:
    config = config or ViewerConfig()
    if source is None and config.data_file is not None:
        source = JsonChangelogSource(config.data_file)
    if source is None:
        logger.warning("No changelog source configured; set DEPDELTA_DATA or pass --data")
    state.configure(source, config)

    app = FastAPI(title="depdelta", version=__version__)

    # Core API
    app.include_router(router)
    app.include_router(graph_router)
    return app
