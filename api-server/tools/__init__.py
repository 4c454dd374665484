from tools.registry import register_tools

__all__ = ["register_tools"]
