from plantcare.blueprints.ui.routes import ui_bp

__all__ = ["ui_bp"]
