"""
Main application entry point.
Uses application factory pattern for better testability and configuration.
"""
from edge_pipeline.core import create_app, settings

# Create the application instance
app = create_app()

if __name__ == "__main__":
    from edge_pipeline.core.server import run
    run(app, settings, app.state.logger)
