import os

import uvicorn

from quizbuilder.app import app


if __name__ == "__main__":
    host = os.environ.get("QUIZ_HOST", "127.0.0.1")
    port = int(os.environ.get("QUIZ_PORT", "8000"))
    uvicorn.run(app, host=host, port=port)
