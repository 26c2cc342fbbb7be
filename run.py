import os

from pawfund import create_app
from pawfund.realtime import socketio

app = create_app()

if __name__ == "__main__":
    port = int(os.getenv("PORT", 5050))
    socketio.run(
        app,
        host=os.getenv("HOST", "127.0.0.1"),
        port=port,
        debug=False,
        use_reloader=False,
        log_output=True,
    )

# Local services:
#   docker compose --env-file .env.docker up -d
#   alembic upgrade head && python scripts/seed.py
# API + Socket.IO in one process:
#   PORT=5050 python run.py
# Notification worker (USE_NOTIFY_QUEUE=1):
#   rq worker -u $REDIS_URL notifications
