from .static import DevServer, WasmRequestHandler

__all__ = ["DevServer", "WasmRequestHandler"]
