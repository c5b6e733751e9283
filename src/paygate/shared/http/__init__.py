from .__http import register_exception_handlers, server_error_handler

__all__ = ["register_exception_handlers", "server_error_handler"]
