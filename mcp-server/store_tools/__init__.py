from store_tools.registry import ToolInvoker, register_tools

__all__ = ["register_tools", "ToolInvoker"]
