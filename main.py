"""
Entry point to run the Knowledge Search backend with one command.

Usage:
    python main.py

Then, in a separate terminal:
    streamlit run ui_app.py
"""

import logging

import uvicorn
from dotenv import load_dotenv


if __name__ == "__main__":
    load_dotenv()

    # Settings are read from the environment at import time.
    from knowledge_search.backend import app
    from knowledge_search.config import settings

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
