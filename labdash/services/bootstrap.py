"""Application bootstrap/run helpers."""


def run_server(app, host, port, log_labdash_action, log_labdash_exception, boot_steps):
    """Run startup steps, then start the Flask server."""
    log_labdash_action("boot-start", command=f"host={host} port={port}")

    for step_name, step_func in boot_steps:
        try:
            step_func()
        except Exception as exc:
            log_labdash_exception(f"boot_step/{step_name}", exc)
            log_labdash_action("boot-failed", command=step_name, rejection_message=str(exc)[:500] or "startup step failed")
            raise

    log_labdash_action("boot-ready", command=f"Server running at: http://localhost:{port}")
    try:
        app.run(host=host, port=port, threaded=True)
    except SystemExit:
        # werkzeug exits directly when the port cannot be bound.
        log_labdash_action("boot-failed", command="app.run", rejection_message=f"could not listen on {host}:{port}")
        raise
    except Exception as exc:
        log_labdash_exception("boot_step/app.run", exc)
        log_labdash_action("boot-failed", command="app.run", rejection_message=str(exc)[:500] or "web server startup failed")
        raise
