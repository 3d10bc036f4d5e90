"""Development entry point for running the learning-model dashboard."""

import os
import sys
import webbrowser
from threading import Timer
from lmdash.app import create_app
from dotenv import load_dotenv

if getattr(sys, "frozen", False):
    load_dotenv(os.path.join(sys._MEIPASS, ".env"))
else:
    load_dotenv()

app = create_app()

def open_browser():
    webbrowser.open_new("http://127.0.0.1:5000/api/state")

if __name__ == "__main__":
    with app.app_context():
        app.extensions["dashboard"].initialize()
    Timer(1, open_browser).start()
    app.run(host="127.0.0.1", port=5000)
