"""App factory and runtime wiring entrypoint."""


def create_app(config_path=None, skip_frontend=False):
    """Return the Flask app instance used by WSGI entrypoints."""
    from labdash.main import build_runtime

    app, _ = build_runtime(config_path=config_path, skip_frontend=skip_frontend)
    return app
