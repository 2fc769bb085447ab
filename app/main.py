import logging

from flask import Flask, jsonify
from flask_cors import CORS
from asgiref.wsgi import WsgiToAsgi
from app.config import settings
from app.db.database import db

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = Flask(__name__)
# Enable CORS
CORS(app, origins=settings.cors_origins_list)

@app.route("/")
async def home():
    return jsonify({
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    })

@app.route("/health")
async def health():
    if not db.connected:
        await db.connect()

    if await db.ping():
        return jsonify({"status": "healthy", "database": "connected"}), 200
    return jsonify({"status": "unhealthy", "database": "unreachable"}), 500

# Blueprints
from app.api.routes_agent import bp as agent_bp
from app.api.routes_employees import bp as employees_bp

app.register_blueprint(agent_bp)
app.register_blueprint(employees_bp)

# WsgiToAsgi wrapper for Uvicorn
asgi_app = WsgiToAsgi(app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(asgi_app, host=settings.HOST, port=settings.PORT)
