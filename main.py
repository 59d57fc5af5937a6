import logging

import uvicorn

from menu_extractor.dependencies import settings
from menu_extractor.web import app

if __name__ == '__main__':
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(threadName)s [%(name)s] %(levelname)-8s %(message)s")
    uvicorn.run(app, host="0.0.0.0")
