"""Lambda entry point wrapping the FastAPI app.

Mangum ships in the ``lambda`` extra so the app itself can be imported and
tested without it.
"""

from mangum import Mangum

from handlers.api_handler import app

api_handler = Mangum(app, lifespan="off")
