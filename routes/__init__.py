from .oneflow import oneflow_bp

def register_blueprints(app):
    app.register_blueprint(oneflow_bp)
