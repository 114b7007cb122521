"""Entry point: ``flask --app app run`` or ``flask --app app purge-archive``."""
from src.ojt_tracker.ojt_tracker.main import create_app

app = create_app()


if __name__ == "__main__":
    app.run(debug=app.config.get("DEBUG", False))
