import logging
from datetime import datetime, timezone

from flask import Flask, jsonify

from .config import Config, MailSettings, PaymentSettings
from .extensions import db, jwt, cors, migrate
from .errors import register_error_handlers


def create_app(config_class=Config, payment_client=None, content_generator=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)
    config_class.init_app(app)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config.get("FRONTEND_ORIGIN") or "*"}},
    )
    migrate.init_app(app, db)

    # Collaborators built from config once, handed to the services
    from .services.payment_service import PaymentGateway
    from .services.mail_service import Mailer
    app.extensions["payment_gateway"] = PaymentGateway(PaymentSettings.from_config(app.config), client=payment_client)
    app.extensions["mailer"] = Mailer(MailSettings.from_config(app.config))
    app.extensions["content_generator"] = content_generator

    register_error_handlers(app)

    # Register blueprints
    from .auth import bp as auth_bp; app.register_blueprint(auth_bp)
    from .product import bp as product_bp; app.register_blueprint(product_bp)
    from .order import bp as order_bp; app.register_blueprint(order_bp)
    from .coupon import bp as coupon_bp; app.register_blueprint(coupon_bp)
    from .payment import bp as payment_bp; app.register_blueprint(payment_bp)
    from .review import bp as review_bp; app.register_blueprint(review_bp)

    from .cli import register_cli
    register_cli(app)

    @app.get("/api/health")
    def health():
        return jsonify(status="healthy", timestamp=datetime.now(timezone.utc).isoformat())

    with app.app_context():
        from . import model  # noqa: F401
        db.create_all()
        app.logger.debug("routes: %s", sorted(r.rule for r in app.url_map.iter_rules()))

    if not app.extensions["payment_gateway"].enabled:
        app.logger.warning("Razorpay keys are not set; payments are disabled")

    return app
