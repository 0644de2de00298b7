"""WSGI entry point: `gunicorn wsgi:app` or `flask --app wsgi run`."""
from retailpos import create_app

app = create_app()

if __name__ == "__main__":
    app.run()
