"""Development entrypoint: `python app.py`.

The reloader stays off so the cutoff scheduler is started exactly once.
"""

import os

from src.qrattend.qrattend.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "5000")),
        debug=app.config["DEBUG"],
        use_reloader=False,
    )
