import logging

from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager

from .auth import login_manager
from .config import Config
from .db import db
from .errors import register_error_handlers

jwt_manager = JWTManager()


def create_app(testing=False, config=None):
    app = Flask(__name__)
    settings = config if config is not None else Config()
    app.config.update(settings.as_dict())
    if testing:
        app.config['TESTING'] = True
        app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///:memory:'
    logging.basicConfig(level=app.config.get('LOG_LEVEL', 'INFO'),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    db.init_app(app)
    login_manager.init_app(app)
    jwt_manager.init_app(app)
    CORS(app, origins=app.config['CORS_ORIGINS'], supports_credentials=True,
         allow_headers=['Content-Type', 'Authorization', 'X-Requested-With', 'Accept', 'Origin'],
         methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS'])
    register_error_handlers(app, db)

    from .auth import auth_bp
    from .projects import projects_bp
    from .tasks import tasks_bp
    from .views import views_bp
    prefix = app.config.get('API_PREFIX', '')
    app.register_blueprint(auth_bp, url_prefix=f'{prefix}/auth')
    app.register_blueprint(projects_bp, url_prefix=f'{prefix}/projects')
    app.register_blueprint(views_bp, url_prefix=f'{prefix}/projects')
    app.register_blueprint(tasks_bp, url_prefix=f'{prefix}/tasks')

    with app.app_context():
        db.create_all()

    @app.get('/health')
    def health():
        return jsonify({'status': 'ok'})

    @app.get('/')
    def index():
        return jsonify({'message': 'Task Planner API'})

    return app
