"""Web surface — Flask app factory and JSON blueprints."""
