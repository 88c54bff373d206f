import os
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager, get_jwt_identity, jwt_required
from flask_pymongo import PyMongo
from pymongo.errors import ExecutionTimeout, PyMongoError
from werkzeug.middleware.proxy_fix import ProxyFix

from backoffice.orders import USERS_COLLECTION, build_order_query
from backoffice.query import InvalidSortField

load_dotenv()

ALLOWED_USER_ROLES = {"admin", "standard"}


def normalize_email(value: Optional[str]) -> str:
    return str(value or "").strip().lower()


def normalize_role(value: Optional[str]) -> str:
    normalized = str(value or "").strip().lower()
    return normalized if normalized in ALLOWED_USER_ROLES else "standard"


def create_app(database=None) -> Flask:
    """Create and configure the back-office Flask application.

    ``database`` is a pymongo-compatible database handle; when omitted one is
    opened from ``MONGO_URI``.
    """
    app = Flask(__name__)

    # Honor proxy headers from the load balancer in front of the dashboard API.
    trusted_proxy_hops_raw = os.getenv("TRUSTED_PROXY_HOPS", "1")
    try:
        trusted_proxy_hops = max(0, int(trusted_proxy_hops_raw))
    except (TypeError, ValueError):
        trusted_proxy_hops = 1
    if trusted_proxy_hops:
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=trusted_proxy_hops,
            x_proto=trusted_proxy_hops,
            x_host=trusted_proxy_hops,
            x_port=trusted_proxy_hops,
        )

    # --- Configuration ---
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
    app.config["MONGO_URI"] = os.getenv("MONGO_URI", "mongodb://localhost:27017/backoffice")
    app.config["DEFAULT_ADMIN_EMAIL"] = normalize_email(os.getenv("DEFAULT_ADMIN_EMAIL"))
    app.config["QUERY_TIMEOUT_MS"] = None
    query_timeout_raw = (os.getenv("QUERY_TIMEOUT_MS") or "").strip()
    if query_timeout_raw:
        try:
            app.config["QUERY_TIMEOUT_MS"] = max(0, int(query_timeout_raw)) or None
        except ValueError:
            app.logger.warning("Ignoring non-numeric QUERY_TIMEOUT_MS=%r", query_timeout_raw)

    # --- Initialize extensions ---
    allowed_origins = [
        "http://localhost:5173",
        "http://localhost:3000",
        os.getenv("FRONTEND_URL", "").strip(),
    ]
    cors_extra = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if cors_extra:
        for origin in cors_extra.split(","):
            trimmed = origin.strip()
            if trimmed:
                allowed_origins.append(trimmed)
    allowed_origins = [origin for origin in allowed_origins if origin]

    CORS(app, supports_credentials=True, origins=allowed_origins or "*")

    JWTManager(app)
    if database is None:
        mongo = PyMongo(app)
        database = mongo.db
    db = database

    order_query = build_order_query(db, timeout_ms=app.config["QUERY_TIMEOUT_MS"])

    # --- Helpers ---

    def get_user_role(user_document) -> str:
        if not user_document:
            return "standard"

        email = normalize_email(user_document.get("email"))
        default_admin_email = app.config["DEFAULT_ADMIN_EMAIL"]
        if default_admin_email and email == default_admin_email:
            return "admin"

        return normalize_role(user_document.get("role", "standard"))

    def require_admin_user():
        current_email = normalize_email(get_jwt_identity())
        current_user = db[USERS_COLLECTION].find_one({"email": current_email}) if current_email else None

        if get_user_role(current_user) == "admin":
            return current_user, None

        return (
            None,
            (
                jsonify({"message": "You need additional permissions to perform this action."}),
                403,
            ),
        )

    # --- Routes ---

    @app.route("/health")
    def health():
        return {"status": "ok"}, 200

    @app.route("/api/admin/orders", methods=["GET"])
    @jwt_required()
    def admin_list_orders():
        _, admin_error = require_admin_user()
        if admin_error:
            return admin_error

        try:
            result = order_query.run(request.args)
        except InvalidSortField as exc:
            return jsonify({"message": str(exc)}), 400
        except ExecutionTimeout as exc:
            app.logger.error("Order search timed out: %s", exc)
            return jsonify({"message": "The order search took too long. Narrow the filters and retry."}), 504
        except PyMongoError as exc:
            app.logger.error("Order search failed: %s", exc)
            return jsonify({"message": "Orders are temporarily unavailable."}), 503

        return jsonify(result.to_dict())

    return app
