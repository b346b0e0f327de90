"""WSGI entry point for the data server."""

import logging
import os

from data_server import create_app
from data_server.storage import UserFile

logger = logging.getLogger(__name__)

app = create_app(os.getenv("FLASK_ENV", "production"))


if __name__ == "__main__":
    logger.info(
        "Data server starting on http://localhost:%s with %d users",
        app.config["DATA_SERVER_PORT"],
        len(UserFile(app.config["DATA_FILE"]).load()),
    )
    app.run(host="0.0.0.0", port=app.config["DATA_SERVER_PORT"], threaded=True)
