from .auth import auth_bp
from .health import health_bp
from .payment import payment_bp
from .plagiarism import plagiarism_bp


def register_blueprints(app):
    app.register_blueprint(plagiarism_bp)
    app.register_blueprint(payment_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(health_bp)
