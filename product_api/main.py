"""ASGI entrypoint.

Run with::

    uvicorn product_api.main:app --reload
"""

from product_api.api import create_app

app = create_app()
