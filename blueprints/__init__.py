from blueprints.search_products_bp import search_products_bp


def register_blueprints(app):
    app.register_blueprint(search_products_bp)
